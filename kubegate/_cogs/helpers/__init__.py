"""
General-purpose helpers not related to the client itself
(neither to the API calls nor to the structs),
which are used to prepare and control the runtime environment.

These are things that should better be in the standard library
or in the dependencies.

Helpers do not depend on anything in the client. For most cases,
they do not even implement any entities or behaviours of the domain
of K8s APIs, but rather some unrelated low-level patterns.

As a rule of thumb, helpers MUST be abstracted from the client
to such an extent that they could be extracted as reusable libraries.
"""
