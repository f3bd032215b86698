"""
Temporal activity wrappers and workflow proxies.

Intentionally empty: ``activities`` pulls in httpx-backed repositories and
must only be imported by the worker, while workflows import ``proxies``.
"""
