"""Club attendance package.

Feature modules (members, attendance, registrations, stats, ...) each carry a
domain model, a repository Protocol with a MySQL implementation, a service and
a thin Flask controller. The kiosk module holds the client-side session
state machine.
"""
