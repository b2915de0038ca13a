"""
Built-in AI personalities.
"""
from typing import Dict, Optional
from game.models import AIPersonality


PROFESSOR = AIPersonality(
    id="professor",
    name="The Professor",
    description="Academic expert, excels in science and history.",
    base_success_rate=0.80,
    category_modifiers={
        "Natural Sciences": 0.15,
        "History": 0.12,
        "Sports, Games, and Entertainment": -0.15,
    },
    consistency=0.9,
    boost_usage_rate=0.7,
)

NOVICE = AIPersonality(
    id="novice",
    name="The Novice",
    description="Beginner, no particular strengths.",
    base_success_rate=0.35,
    category_modifiers={},
    consistency=0.5,
    boost_usage_rate=0.0,
)

SPORTS_FANATIC = AIPersonality(
    id="sports_fanatic",
    name="Sports Fanatic",
    description="Excels in sports, struggles in science.",
    base_success_rate=0.60,
    category_modifiers={
        "Sports, Games, and Entertainment": 0.25,
        "Natural Sciences": -0.20,
    },
    consistency=0.6,
    boost_usage_rate=0.8,
)

JACK_OF_ALL_TRADES = AIPersonality(
    id="jack_of_all_trades",
    name="Jack-of-All-Trades",
    description="Balanced competitor, slight bonuses in many categories.",
    base_success_rate=0.65,
    category_modifiers={
        "History": 0.08,
        "Visual Arts and Design": 0.08,
        "Geography": 0.08,
    },
    consistency=0.7,
    boost_usage_rate=0.5,
)

WILDCARD = AIPersonality(
    id="wildcard",
    name="The Wildcard",
    description="Unpredictable, moderate skill in all categories.",
    base_success_rate=0.50,
    category_modifiers={},
    consistency=0.1,
    boost_usage_rate=0.6,
)

AI_PERSONALITIES: Dict[str, AIPersonality] = {
    p.id: p for p in (PROFESSOR, NOVICE, SPORTS_FANATIC, JACK_OF_ALL_TRADES, WILDCARD)
}


def get_personality(personality_id: str) -> Optional[AIPersonality]:
    """Look up a built-in personality by id."""
    return AI_PERSONALITIES.get(personality_id)
