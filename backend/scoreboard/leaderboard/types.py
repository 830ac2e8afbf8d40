from dataclasses import dataclass, field


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int  # absolute position in the sorted board, 1-based
    score_id: str
    player_id: str
    display_name: str | None
    score: int
    time_seconds: int
    mistakes: int
    correct_placements: int
    is_current_player: bool = False


@dataclass(frozen=True)
class LeaderboardPage:
    entries: list[LeaderboardEntry] = field(default_factory=list)
    has_more: bool = False
    next_from: int = 0

    def find_player(self, player_id: str) -> LeaderboardEntry | None:
        return next((e for e in self.entries if e.player_id == player_id), None)
