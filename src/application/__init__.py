"""
application - Services that sit between the entity store and its consumers.

Depends on domain/ ports only; concrete repositories are injected by the
factory.
"""
