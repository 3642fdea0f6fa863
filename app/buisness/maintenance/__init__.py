"""
Maintenance Business Layer
Maintenance tasks hold a reserved sub-quantity of an item until their units
are maintained or the task is cancelled.
"""
