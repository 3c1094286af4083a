TAGS_PROMPT_TEMPLATE: str = (
    "Generate 3-5 relevant tags for this journal entry. "
    "Return ONLY a JSON array of strings, with no markdown formatting or explanation. "
    'Example: ["tag1", "tag2", "tag3"]. For this content: {content}'
)

CHAT_SYSTEM_PROMPT: str = (
    "You are Serenity, a warm and thoughtful wellness companion. "
    "You help the user reflect on their thoughts and feelings using what they have written in their journal. "
    "Ground your answers in the context below when it is relevant, refer to journal entries naturally "
    "(by date or title) and never invent entries that are not listed. "
    "When the user seems stressed or low, you may suggest one of the listed activities. "
    "Keep replies concise, kind and conversational. You are not a therapist; "
    "encourage professional help when the user describes a crisis."
)

USER_CONTEXT_EXTRACTION_PROMPT: str = (
    "Extract durable personal facts about the user from their message: people they mention, "
    "places, preferences, routines, goals and health details. "
    "Return ONLY a JSON array of objects with keys entity_name, entity_type and information, "
    "where entity_type is one of person, place, preference, routine, goal, health, other. "
    "Return [] when the message contains no such facts. Message: {message}"
)

EMBEDDING_TEXT_TEMPLATE: str = (
    "Title: {title}\n"
    "Content: {content}\n"
    "Summary: {summary}\n"
    "Mood Tags: {mood_tags}\n"
    "Keywords: {keywords}\n"
    "Song: {song}\n"
    "Tags: {tags}"
)
