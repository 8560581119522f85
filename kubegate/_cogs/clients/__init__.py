"""
All the routines to talk to Kubernetes API and other Kubernetes-like APIs.

This library is supposed to be mocked when the mocked K8s client is needed,
and only the high-level logic has to be tested, not the API calls themselves.

The routines are asynchronous and are based on ``aiohttp``. The exceptions
of ``aiohttp`` are not leaked except for the low-level networking issues;
see :mod:`errors` for the API-level errors.
"""
