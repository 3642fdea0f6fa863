"""
Business layer for the lab quantity ledger.
Contains the ledger rules, state machines and the managers that apply admin
actions, separated from data persistence concerns.
"""
