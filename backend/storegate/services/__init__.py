# Services package init
"""
Storegate Backend - Services Layer
===================================

What:  Collaborators the request pipeline calls out to.
How:   Each service is a small object or function handed to the interceptors
       when the chain is built, so tests can swap any of them for a stub.

Service Inventory:
    - ActorResolver (abstract): Resolves the acting user id for audit records
    - FeatureActorResolver: Reads the actor from the request's feature bag
    - AuditLogger: Persists AuditRecord rows to the audit_log table
    - installation: "Is the store installed?" predicate from settings
    - static_resources: "Does this path name a static file?" predicate
"""
