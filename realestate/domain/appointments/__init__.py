"""
Appointments Domain

Customer viewing requests for listed properties and their lifecycle:

    pending → assigned → scheduled → completed
    (cancelled from any open status)

- schemas.py        Request/response models (camelCase wire format)
- repository.py     Queries, queue renumbering, read projections
- state_machine.py  Legal transitions and the columns each may write
- policies.py       Role and ownership checks, one per operation
- directory.py      Read-only property/agent lookups and the property lock
- service.py        Transactions tying the above together
- notifications.py  Lifecycle emails queued after commit
- router.py         /api/appointments endpoints
"""
