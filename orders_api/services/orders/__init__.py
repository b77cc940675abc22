"""
Order services.

- enums: status values and the transition table
- state_machine: transition validation
- repository: locked order store, the concurrency boundary
- service: mutation commands
- queries: single-order read and filtered listing
"""
