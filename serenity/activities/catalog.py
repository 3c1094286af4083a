# Seeded on startup; names are unique so re-seeding is a no-op.
DEFAULT_ACTIVITIES = [
    {
        "name": "Box breathing",
        "description": "Inhale for 4 counts, hold for 4, exhale for 4, hold for 4. Repeat for a few minutes.",
        "category": "mindfulness",
        "duration_minutes": 5,
        "mood_tags": ["anxious", "stressed", "overwhelmed", "angry"],
    },
    {
        "name": "Gratitude list",
        "description": "Write down three things you are grateful for today and why.",
        "category": "journaling",
        "duration_minutes": 10,
        "mood_tags": ["sad", "lonely", "frustrated", "grateful"],
    },
    {
        "name": "Short walk outside",
        "description": "Take a 15 minute walk and notice five things you can see, hear or smell.",
        "category": "movement",
        "duration_minutes": 15,
        "mood_tags": ["restless", "stressed", "tired", "sad"],
    },
    {
        "name": "Body scan",
        "description": "Lie down and slowly move your attention from your toes to your head, releasing tension.",
        "category": "mindfulness",
        "duration_minutes": 10,
        "mood_tags": ["anxious", "tired", "overwhelmed"],
    },
    {
        "name": "Reach out to a friend",
        "description": "Send a message or call someone you trust and share how your day went.",
        "category": "connection",
        "duration_minutes": 15,
        "mood_tags": ["lonely", "sad", "happy", "excited"],
    },
    {
        "name": "Celebrate a win",
        "description": "Write about something that went well and what you did to make it happen.",
        "category": "journaling",
        "duration_minutes": 10,
        "mood_tags": ["happy", "proud", "excited", "grateful"],
    },
]
