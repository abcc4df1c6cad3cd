"""
                        Services Module

Order engine and its collaborators. Storage follows the hybrid pattern:
one interface, an in-memory implementation for development and real
backends for staging/production.

Services:
    - order_factory: validation, pricing and id generation for new orders
    - status: ACTIVE -> COMPLETED transition
    - analytics: dashboard report over the whole order collection
    - order_service: transport-agnostic facade used by the API
    - storage: order store backends (memory, SQL, Redis)
    - excel_manager: file-locked Excel ledger of completed orders
"""
