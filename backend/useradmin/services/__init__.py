"""Service layer.

Submodules are imported explicitly by callers
(``useradmin.services.users``, ``useradmin.services.auth``); the storage
accessor depends on :mod:`useradmin.services._shared`, so nothing is
re-exported here.
"""
