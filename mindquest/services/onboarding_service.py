"""OnboardingService - creates a new user's progress document"""

import logging

from mindquest.exceptions import ActionNotAllowedError, PersistenceError, ValidationError
from mindquest.gamification.content_pools import get_avatar
from mindquest.models.progress import MainPath, UserProgress
from mindquest.models.results import ActionResult, NoticeKind
from mindquest.services.base import GameService

logger = logging.getLogger(__name__)


class OnboardingService(GameService):
    """Service for starting a user's journey."""

    async def create_user_progress(
        self,
        user_id: str,
        display_name: str,
        avatar_id: int,
        main_path: str
    ) -> ActionResult:
        """
        Write the initial progress document

        Args:
            user_id: Authenticated user id
            display_name: Name shown in the app (trimmed, must not be blank)
            avatar_id: Id from the avatar list
            main_path: resilience, focus or positivity

        Raises:
            ValidationError: blank name, unknown avatar or unknown path
            ActionNotAllowedError: the user already has a document
        """
        name = (display_name or "").strip()
        if not name:
            raise ValidationError(
                message="Please enter a name to begin your journey.",
                field="display_name",
                value=display_name
            )

        avatar = get_avatar(avatar_id)
        if avatar is None:
            raise ValidationError(message="Please choose an avatar.", field="avatar_id", value=avatar_id)

        try:
            path = MainPath(main_path)
        except ValueError:
            raise ValidationError(message="Please choose a path.", field="main_path", value=main_path)

        result = ActionResult()
        try:
            if await self.store.get(user_id) is not None:
                raise ActionNotAllowedError("Your journey has already begun.", user_id=user_id)

            document = UserProgress(display_name=name, avatar_url=avatar.url, main_path=path).to_document()
            await self.store.set(user_id, document)
        except PersistenceError as e:
            logger.error(f"Creating progress document failed for user {user_id}: {e}")
            return result.fail("Could not start your journey. Please try again.")

        logger.info(f"Created progress document for user {user_id} on the {path.value} path")
        result.updates.update(document)
        return result.notify(NoticeKind.SUCCESS, "Your journey begins!")
