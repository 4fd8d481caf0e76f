"""Fixed texts the bridge sends back to the chat user."""

CLEAR_CONFIRMATION = "✅ Conversation history cleared."

NO_HISTORY = "No previous chat history found."

ARCHIVED_TRAILER = (
    "\n\n🗂️ This conversation has been archived and cleared. "
    "Send /history to review it or just start a new question."
)

GENERIC_FAILURE = "Internal Server Error. Please try again later."

ROLE_LABELS = {"user": "You", "assistant": "Bot"}
