from dataclasses import dataclass


@dataclass(frozen=True)
class GameSettings:
    game_duration_sec: int = 120
    countdown_sec: int = 5
    next_question_delay_sec: float = 2
    results_grace_sec: float = 30
    stale_room_max_age_sec: float = 3600
    stale_sweep_interval_sec: float = 300
    min_players: int = 2
    max_players: int = 4
    fast_answer_ms: int = 10000

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        """Read the game knobs out of a Flask config (or any mapping)."""
        defaults = cls()
        return cls(
            game_duration_sec=int(config.get('GAME_DURATION_SEC', defaults.game_duration_sec)),
            countdown_sec=int(config.get('COUNTDOWN_SEC', defaults.countdown_sec)),
            next_question_delay_sec=float(config.get('NEXT_QUESTION_DELAY_SEC', defaults.next_question_delay_sec)),
            results_grace_sec=float(config.get('RESULTS_GRACE_SEC', defaults.results_grace_sec)),
            stale_room_max_age_sec=float(config.get('STALE_ROOM_MAX_AGE_SEC', defaults.stale_room_max_age_sec)),
            stale_sweep_interval_sec=float(config.get('STALE_SWEEP_INTERVAL_SEC', defaults.stale_sweep_interval_sec)),
            min_players=int(config.get('MIN_PLAYERS', defaults.min_players)),
            max_players=int(config.get('MAX_PLAYERS', defaults.max_players)),
            fast_answer_ms=int(config.get('FAST_ANSWER_MS', defaults.fast_answer_ms)),
        )
