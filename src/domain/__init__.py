"""Domain layer: the site settings aggregate, its synchronizer and VAT arithmetic.

Nothing in this package knows which backend stores the settings; the
synchronizer talks to a :class:`~src.domain.settings.ports.PersistenceAdapter`
and the infrastructure layer supplies the implementation.
"""
