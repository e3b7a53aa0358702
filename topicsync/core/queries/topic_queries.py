"""Read-only queries over locally cached topics."""

import logging
from collections.abc import Iterable

from topicsync.domain.entities import Topic
from topicsync.domain.exceptions import NotAuthenticatedError
from topicsync.ports.auth import CredentialProvider
from topicsync.ports.repositories import TopicRepository

logger = logging.getLogger(__name__)


class TopicQueryService:
    """Answers "which of these topics do I lead / belong to" from the local store."""

    def __init__(
        self, repository: TopicRepository, credentials: CredentialProvider
    ) -> None:
        self.repository = repository
        self.credentials = credentials

    def leader_topics(self, ids: Iterable[int]) -> list[Topic]:
        """List local topics with an id in ``ids`` led by the signed-in user.

        Raises:
            NotAuthenticatedError: If nobody is signed in.
        """
        user_id = self.credentials.current_user_id()
        if user_id is None:
            raise NotAuthenticatedError(
                "Cannot list led topics without a signed-in user",
                hint="Set the user id environment variable named in [auth] user_id_env",
            )
        return self.repository.list_leader_topics(ids, user_id)

    def member_topics(self, ids: Iterable[int]) -> list[Topic]:
        """List local topics with an id in ``ids`` the signed-in user is a member of.

        Returns an empty list when nobody is signed in.
        """
        user_id = self.credentials.current_user_id()
        if user_id is None:
            logger.debug("No signed-in user; no member topics")
            return []
        return self.repository.list_member_topics(ids, user_id)
