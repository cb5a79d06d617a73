"""
domain - Recipe records, view specifications and the pure functions over them.

No I/O, no event loop, no SQLite. Everything here can be evaluated against
a snapshot from any thread.
"""
