"""User administration use cases.

Import :class:`~useradmin.services.users.service.UserService` and the DTOs
from their modules; the user repository imports :mod:`.dto`, so this package
stays free of eager imports.
"""
