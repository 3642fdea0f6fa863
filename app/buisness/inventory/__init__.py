"""
Inventory business layer.

The quantity ledger lives here: the QuantityRecord snapshot, the stock
allocation engine that alone writes quantity columns, and the policies it
consults (disposal gate, borrowing eligibility).
"""
