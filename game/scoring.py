"""
Scoring engine - turn-based point stealing with the "I KNOW!" power-up.
"""
from typing import List, Sequence
from game.models import Player, Question


MAX_DECIMALS = 10


def round_to_max_decimals(value: float, max_decimals: int = MAX_DECIMALS) -> float:
    """Round to a bounded number of decimals to keep float drift out of scores."""
    return round(value, max_decimals)


class ScoringEngine:
    """Calculates per-player point deltas for a resolved round.

    Rules:
    - Turn player: base points scaled by how many others were also correct,
      nothing if wrong.
    - Other players steal base points only when the turn player was wrong
      and they were right.
    - "I KNOW!" doubles a steal, and doubles the loss of a wrong answer even
      when the turn player was right.
    """

    # Multiplier when every competitor also answered correctly
    MIN_MULTIPLIER = 0.5
    I_KNOW_FACTOR = 2

    def calculate_question_points(self, difficulty: float) -> float:
        """Base points for a question: 1 + difficulty, in [1, 2]."""
        return round_to_max_decimals(1 + difficulty)

    def calculate_point_multiplier(self, total_others: int, others_correct: int) -> float:
        """
        Scale points down by the share of competitors that were also correct.

        Args:
            total_others: Number of eligible competitors
            others_correct: How many of them answered correctly

        Returns:
            Multiplier between 0.5 and 1.0
        """
        if total_others <= 0:
            return 1.0
        ratio = others_correct / total_others
        return 1.0 - ratio * (1.0 - self.MIN_MULTIPLIER)

    def calculate_player_points(
        self,
        player_index: int,
        players: Sequence[Player],
        turn_player_index: int,
        question: Question
    ) -> float:
        """
        Calculate the points earned by one player this round.

        Returns:
            Point delta, negative when an "I KNOW!" answer was wrong
        """
        player = players[player_index]
        is_correct = question.is_correct(player.selected_answer)
        base_points = self.calculate_question_points(question.difficulty)

        if player_index == turn_player_index:
            if not is_correct:
                return 0.0
            others_correct = sum(
                1 for i, p in enumerate(players)
                if i != player_index and question.is_correct(p.selected_answer)
            )
            multiplier = self.calculate_point_multiplier(len(players) - 1, others_correct)
            return base_points * multiplier

        turn_player_correct = question.is_correct(players[turn_player_index].selected_answer)
        used_i_know = player.used_i_know_this_round

        if not used_i_know and (not is_correct or turn_player_correct):
            return 0.0
        if used_i_know and is_correct and turn_player_correct:
            return 0.0

        # Competitors exclude the turn player and the player being scored
        competitors_correct = sum(
            1 for i, p in enumerate(players)
            if i not in (turn_player_index, player_index) and question.is_correct(p.selected_answer)
        )
        multiplier = self.calculate_point_multiplier(len(players) - 2, competitors_correct)
        points = base_points * multiplier

        if not used_i_know:
            return points
        if is_correct:
            return points * self.I_KNOW_FACTOR
        # Penalty applies regardless of the turn player's result
        return -points * self.I_KNOW_FACTOR

    def calculate_round_deltas(
        self,
        players: Sequence[Player],
        turn_player_index: int,
        question: Question
    ) -> List[float]:
        """Point delta for every player, in roster order."""
        if not 0 <= turn_player_index < len(players):
            raise IndexError(f"Turn player index {turn_player_index} out of range")
        return [
            round_to_max_decimals(
                self.calculate_player_points(index, players, turn_player_index, question)
            )
            for index in range(len(players))
        ]

    def apply_scores(
        self,
        players: Sequence[Player],
        turn_player_index: int,
        question: Question
    ) -> List[float]:
        """
        Add this round's deltas to cumulative scores.

        Scores are never clamped and may go negative.

        Returns:
            The deltas that were applied
        """
        deltas = self.calculate_round_deltas(players, turn_player_index, question)
        for player, delta in zip(players, deltas):
            if delta:
                player.score = round_to_max_decimals(player.score + delta)
        return deltas
