"""Bounded context window sent to the provider on every round."""

from collections.abc import Sequence

from mortgage_assistant.conversation.models import ConversationTurn, Role

DEFAULT_WINDOW_SIZE = 10


def build_context_window(
    turns: Sequence[ConversationTurn],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> list[ConversationTurn]:
    """
    Select the turns to send to the provider.

    The system turn always comes first, followed by the most recent
    ``window_size`` turns. The trailing slice never starts with a tool turn:
    its start moves back until it reaches the assistant turn that requested
    the tools, or turn 1.

    Args:
        turns: Full session transcript, system turn first
        window_size: Number of recent turns kept after the system turn

    Returns:
        Ordered list of turns, without duplicates
    """
    if len(turns) <= window_size + 1:
        return list(turns)
    if window_size <= 0:
        return [turns[0]]

    start = max(len(turns) - window_size, 1)
    while turns[start].role is Role.TOOL and start > 1:
        start -= 1

    return [turns[0], *turns[start:]]
