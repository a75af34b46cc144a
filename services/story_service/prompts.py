from __future__ import annotations

# Bengali: "You write funny Bengali stories for children. Write a short funny
# story with a lesson about "{topic}", within exactly {word_count} words."
STORY_PROMPT_TEMPLATE = (
    "তুমি ছোটদের জন্য বাংলা মজার গল্প লেখো। "
    "\"{topic}\" নিয়ে একটা ছোট্ট মজার গল্প ও শিক্ষণীয় বার্তা লেখো, "
    "ঠিক {word_count} শব্দের মধ্যে।"
)

STORY_TEMPERATURE = 0.8


def build_story_prompt(topic: str, word_count: str) -> str:
    return STORY_PROMPT_TEMPLATE.format(topic=topic, word_count=word_count)
