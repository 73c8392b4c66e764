"""
ResultPipeline — turns a finished task run into something the user sees.

Success with response text → one Notification routed to the display slot
and the log. A conversation id in the response is linked back to the task
and, for search tasks, marked as search-derived. Failures produce nothing
visible; scheduled tasks run unattended, so they are only logged.
"""

from __future__ import annotations

import logging

from aura.backend.base import BackendResponse
from aura.conversations.tagger import ConversationTagger
from aura.notifications.base import Notification
from aura.notifications.router import NotificationRouter
from aura.tasks.task import AgentTask

logger = logging.getLogger(__name__)


class ResultPipeline:
    def __init__(
        self,
        router: NotificationRouter,
        tagger: ConversationTagger | None = None,
    ) -> None:
        self._router = router
        self._tagger = tagger

    async def handle_success(self, task: AgentTask, response: BackendResponse) -> Notification | None:
        """Publish the result of a successful run. Returns the notification, if any."""
        await self._tag_conversation(task, response)

        if not response.text:
            logger.info(f"Agent task {task.task_name!r} completed without response text")
            return None

        notification = Notification(
            task_id=task.id,
            task_name=task.task_name,
            message=response.text,
            is_search=task.is_search,
        )
        delivered = await self._router.route(notification)
        logger.info(
            f"Agent task {task.task_name!r} completed - notification delivered to "
            f"{', '.join(delivered) or 'no channel'}"
        )
        return notification

    def handle_failure(self, task: AgentTask, error: Exception) -> None:
        logger.error(f"Agent task {task.task_name!r} (id={task.id}) execution failed: {error}")

    async def _tag_conversation(self, task: AgentTask, response: BackendResponse) -> None:
        if self._tagger is None or not response.conversation_id:
            return
        try:
            await self._tagger.mark_conversation_as_task_origin(response.conversation_id, task.id)
            if task.is_search:
                await self._tagger.mark_conversation_as_search_origin(response.conversation_id)
        except Exception as e:
            logger.warning(f"Could not tag conversation {response.conversation_id}: {e}")
