"""
Bot AI - decision model for AI players.
Category/difficulty choice, answering and "I KNOW!" usage.
"""
import random
from typing import List, Optional, Sequence, Tuple
from game.constants import LOW_DIFFICULTY_MAX, MEDIUM_DIFFICULTY_MAX, clamp01
from game.models import AIPersonality, Player, Question


# Random noise added when ranking categories and targeting a difficulty
BLUR_NOISE = 0.1
STRONG_CATEGORY_THRESHOLD = 0.05
WEAK_CATEGORY_THRESHOLD = -0.05
TOP_PICK_CHANCE = 0.3
TOP_PICK_POOL = 3
BOOST_CATEGORY_THRESHOLD = 0.1
MAX_CONSISTENCY_VARIANCE = 0.3


def pick_random_selection(
    categories: Sequence[str],
    difficulties: Sequence[float],
    rng: Optional[random.Random] = None
) -> Tuple[str, float]:
    """Pick a category and a difficulty uniformly at random."""
    rng = rng or random
    if not categories or not difficulties:
        raise ValueError("Cannot pick from an empty selection")
    return rng.choice(list(categories)), rng.choice(list(difficulties))


class BotAI:
    """Decision model for an AI player.

    Every decision is instantaneous; staged reveals belong to the game engine.
    """

    def __init__(self, personality: Optional[AIPersonality] = None, rng: Optional[random.Random] = None):
        """Initialize bot AI with a personality and random source."""
        self.personality = personality
        self.rng = rng or random.Random()

    def _noise(self) -> float:
        return self.rng.uniform(-BLUR_NOISE, BLUR_NOISE)

    def _rank_categories(self, categories: Sequence[str]) -> List[Tuple[str, float]]:
        """Rank categories by modifier plus noise, best first."""
        ranked = [
            (category, self.personality.modifier_for(category) + self._noise())
            for category in categories
        ]
        ranked.sort(key=lambda item: item[1], reverse=True)
        return ranked

    def _closest_difficulty(self, target: float, difficulties: Sequence[float]) -> float:
        return min(difficulties, key=lambda d: (abs(d - target), d))

    def select_category_and_difficulty(
        self,
        categories: Sequence[str],
        difficulties: Sequence[float]
    ) -> Tuple[str, float]:
        """
        Choose a category and difficulty as a pair.

        Strong categories are paired with the difficulty closest to the bot's
        expected success, weak categories with low difficulties.

        Args:
            categories: Unused categories
            difficulties: Unused difficulties

        Returns:
            Tuple of (category, difficulty)
        """
        if not self.personality:
            return pick_random_selection(categories, difficulties, self.rng)
        if not categories or not difficulties:
            raise ValueError("Cannot pick from an empty selection")

        ranked = self._rank_categories(categories)
        strong = [item for item in ranked if item[1] > STRONG_CATEGORY_THRESHOLD]
        weak = [item for item in ranked if item[1] < WEAK_CATEGORY_THRESHOLD]
        neutral = [
            item for item in ranked
            if WEAK_CATEGORY_THRESHOLD <= item[1] <= STRONG_CATEGORY_THRESHOLD
        ]

        low = [d for d in difficulties if d <= LOW_DIFFICULTY_MAX]
        medium = [d for d in difficulties if LOW_DIFFICULTY_MAX < d < MEDIUM_DIFFICULTY_MAX]

        if strong:
            if len(strong) > 1 and self.rng.random() < TOP_PICK_CHANCE:
                category = self.rng.choice(strong[:TOP_PICK_POOL])[0]
            else:
                category = strong[0][0]
            target = clamp01(
                self.personality.base_success_rate
                + self.personality.modifier_for(category)
                + self._noise()
            )
            return category, self._closest_difficulty(target, difficulties)

        if weak and low:
            return self.rng.choice(weak)[0], self.rng.choice(low)

        if medium:
            category = self.rng.choice(neutral)[0] if neutral else ranked[0][0]
            return category, self.rng.choice(medium)

        # Fallback: best category at the hardest difficulty left
        return ranked[0][0], max(difficulties)

    def strongest_modifier(self, question: Question) -> float:
        """Category modifier with the largest magnitude across the question's tags."""
        if not self.personality:
            return 0.0
        modifier = 0.0
        for category in sorted(question.categories):
            value = self.personality.modifier_for(category)
            if abs(value) > abs(modifier):
                modifier = value
        return modifier

    def success_chance(self, question: Question) -> float:
        """Probability of answering the question correctly."""
        chance = 1 - question.difficulty
        if not self.personality:
            return clamp01(chance)

        # baseSuccessRate 0.5 is an average player, worth up to +/-25%
        chance += (self.personality.base_success_rate - 0.5) * 0.5
        chance += self.strongest_modifier(question)
        variance = (1 - self.personality.consistency) * MAX_CONSISTENCY_VARIANCE
        chance += self.rng.uniform(-1, 1) * variance
        return clamp01(chance)

    def generate_answer(self, question: Question) -> int:
        """
        Generate the bot's answer index for a question.

        Returns:
            The correct index, or a uniformly chosen wrong one
        """
        if self.rng.random() < self.success_chance(question):
            return question.correct_answer_index
        wrong_answers = [
            index for index in range(len(question.answers))
            if index != question.correct_answer_index
        ]
        if not wrong_answers:
            return question.correct_answer_index
        return self.rng.choice(wrong_answers)

    def should_use_i_know(self, player: Player, question: Question, is_turn_player: bool) -> bool:
        """
        Decide whether to use the "I KNOW!" power-up.

        Only considered in a strong category, then used with the
        personality's boost usage rate.
        """
        if is_turn_player:
            return False
        if player.i_know_powerups_remaining <= 0 or player.used_i_know_this_round:
            return False
        if not self.personality:
            return False

        highest = 0.0
        for category in question.categories:
            highest = max(highest, self.personality.modifier_for(category))
        if highest > BOOST_CATEGORY_THRESHOLD:
            return self.rng.random() < self.personality.boost_usage_rate
        return False
