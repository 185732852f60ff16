"""Generation module.

Chooses provider instances for a request, calls them in order, and records
each instance's failure state. Also resolves asynchronous vendor jobs.
"""
