"""
Borrowing Business Layer
Request/approve/release/return workflow for lending item units.
"""
