"""
Shared data models for the game engine and the front end.
This keeps the end-of-round data in one shape wherever it is shown.
"""
from dataclasses import dataclass

WON = "won"
LOST = "lost"


@dataclass
class RoundSummary:
    """End-of-round statistics data model."""
    difficulty: str
    outcome: str
    clicks: int
    matched_pairs: int
    total_pairs: int
    time_left: int
    time_limit: int
    power_ups_used: int = 0

    @property
    def won(self):
        return self.outcome == WON

    @property
    def pairs_left(self):
        return self.total_pairs - self.matched_pairs

    @property
    def elapsed_seconds(self):
        return self.time_limit - self.time_left

    @classmethod
    def from_dict(cls, data):
        """Create a RoundSummary object from a dictionary."""
        return cls(
            difficulty=data.get('difficulty', ''),
            outcome=data.get('outcome', LOST),
            clicks=data.get('clicks', 0),
            matched_pairs=data.get('matched_pairs', 0),
            total_pairs=data.get('total_pairs', 0),
            time_left=data.get('time_left', 0),
            time_limit=data.get('time_limit', 0),
            power_ups_used=data.get('power_ups_used', 0)
        )

    def to_dict(self):
        """Convert the RoundSummary object to a dictionary."""
        return {
            'difficulty': self.difficulty,
            'outcome': self.outcome,
            'clicks': self.clicks,
            'matched_pairs': self.matched_pairs,
            'total_pairs': self.total_pairs,
            'time_left': self.time_left,
            'time_limit': self.time_limit,
            'power_ups_used': self.power_ups_used
        }
