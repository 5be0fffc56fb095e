"""
                        Services Module

Business logic and external collaborators.

Services:
    - authorization: shop access policy
    - analytics: shop dashboard aggregation
    - realtime: room-based publish/subscribe (in-memory or Redis)
    - storage: menu image storage
"""
