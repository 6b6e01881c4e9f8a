import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of allowed browser origins
    CORS_ORIGINS = os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000',
    )
    # Game clock and pacing (seconds)
    GAME_DURATION_SEC = int(os.environ.get('GAME_DURATION_SEC', '120'))
    COUNTDOWN_SEC = int(os.environ.get('COUNTDOWN_SEC', '5'))
    NEXT_QUESTION_DELAY_SEC = int(os.environ.get('NEXT_QUESTION_DELAY_SEC', '2'))
    # Results screen hold time before the room is deleted (seconds)
    RESULTS_GRACE_SEC = int(os.environ.get('RESULTS_GRACE_SEC', '30'))
    # Stale finished-room sweep
    STALE_ROOM_MAX_AGE_SEC = int(os.environ.get('STALE_ROOM_MAX_AGE_SEC', '3600'))
    STALE_SWEEP_INTERVAL_SEC = int(os.environ.get('STALE_SWEEP_INTERVAL_SEC', '300'))
    # Room capacity
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # Answers faster than this earn a bonus point (ms)
    FAST_ANSWER_MS = int(os.environ.get('FAST_ANSWER_MS', '10000'))
    MAX_BET = int(os.environ.get('MAX_BET', '10000'))
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '10'))
