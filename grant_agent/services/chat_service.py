"""One conversation turn: route the latest message and build the reply."""

from grant_agent.chains.chat_reply import generate_chat_reply
from grant_agent.chains.extract_profile_updates import extract_profile_updates
from grant_agent.core.config import get_settings
from grant_agent.core.grant_parser import format_grant_for_display
from grant_agent.core.intent import (
    detect_profile_update_context,
    is_grant_search_request,
    is_show_grants_request,
    is_status_update_request,
    parse_status_update_request,
)
from grant_agent.core.logging import get_logger
from grant_agent.core.schemas_chat import ChatResponse
from grant_agent.core.schemas_grants import Grant
from grant_agent.db import grants as grants_db
from grant_agent.db import profiles as profiles_db
from grant_agent.services.grant_discovery import run_grant_discovery
from grant_agent.services.profile_updates import (
    apply_profile_updates,
    apply_to_session_profile,
    summarize_updates,
)

logger = get_logger(__name__)

STATUS_HELP = """I'd love to help update your grant status! I couldn't tell which grant you meant.

**Try saying something like:**
- "Mark the Community Healing Initiative as Interested"
- "Mark Cultural Preservation Fund as Applied"

Or say "Show my grants" first and then tell me which one to update."""

NO_GRANTS_REPLY = (
    "You don't have any grants saved yet. Try saying **'Find grants'** to discover "
    "opportunities for your organization!"
)

GRANTS_COMMANDS = """
**Commands you can use:**
- "Mark [grant name] as applied" - Update grant status
- "Find new grants" - Search for more opportunities"""


async def render_grant_list(limit: int | None = None) -> str:
    """Markdown listing of saved grants with urgency markers."""
    rows = await grants_db.list_grants(limit=limit or get_settings().MAX_GRANTS_LISTED)
    if not rows:
        return NO_GRANTS_REPLY

    lines = [f"# Your Grant Database\n\nHere are your saved grants ({len(rows)} total):\n"]
    for row in rows:
        grant = Grant.model_validate(row)
        lines.append(format_grant_for_display(grant) + f"   • **Status:** {grant.status}\n")
    lines.append(GRANTS_COMMANDS)
    return "\n".join(lines)


async def update_status_from_message(message: str) -> str:
    """Resolve "mark <grant> as <status>" against the store and apply it."""
    name, status = parse_status_update_request(message)
    if not name or not status:
        return STATUS_HELP

    grant = await grants_db.find_grant_by_name(name)
    if grant is None:
        matches = await grants_db.search_grants_by_name(name)
        grant = matches[0] if len(matches) == 1 else None
    if grant is None:
        return f"I couldn't find a saved grant called **{name}**.\n\n{STATUS_HELP}"

    await grants_db.update_grant_status(grant["id"], status)
    return f"✅ Updated **{grant['grant_name']}** to **{status}**."


async def handle_chat_turn(messages: list[dict[str, str]]) -> ChatResponse:
    """
    Handle the latest message of a conversation.

    Grant search, grant listing and status updates are answered directly.
    Anything else goes through profile extraction and a model reply.
    """
    latest = messages[-1] if messages else {"role": "user", "content": ""}
    text = latest.get("content", "")

    if latest.get("role") == "user":
        if is_grant_search_request(text):
            report = await run_grant_discovery(search_query=text)
            return ChatResponse(content=report.summary, intent="grant_search")

        if is_show_grants_request(text):
            try:
                content = await render_grant_list()
            except Exception as e:
                logger.warning(f"Listing grants failed: {e}")
                content = "I had trouble accessing your grant database. Please try again."
            return ChatResponse(content=content, intent="show_grants")

        if is_status_update_request(text):
            try:
                content = await update_status_from_message(text)
            except Exception as e:
                logger.warning(f"Status update failed: {e}")
                content = "I had trouble processing that status update. Please try rephrasing your request."
            return ChatResponse(content=content, intent="status_update")

    try:
        session_profile = await profiles_db.get_active_profile()
    except Exception as e:
        logger.warning(f"Failed to load active profile: {e}")
        session_profile = None

    profile_updated = False
    summary = ""
    warnings: list[str] = []
    contexts = detect_profile_update_context(text) if latest.get("role") == "user" else []
    if contexts:
        extracted = await extract_profile_updates(text, contexts, session_profile)
        if extracted:
            outcome = await apply_profile_updates(extracted, session_profile)
            if outcome.success and outcome.merge and outcome.merge.has_updates:
                profile_updated = True
                session_profile = apply_to_session_profile(session_profile, outcome)
                summary = summarize_updates(outcome)
                warnings = outcome.merge.warnings

    reply = await generate_chat_reply(messages, session_profile, profile_updated)
    return ChatResponse(
        content=reply + summary,
        intent="profile_update" if profile_updated else "conversation",
        profile_updated=profile_updated,
        active_profile=session_profile,
        warnings=warnings,
    )
