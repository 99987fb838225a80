import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///leaderboard.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Stopwatch refresh cadence (seconds); display freshness only
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    # Background ticks are skipped under TESTING unless this is set
    ENABLE_TIMER_TICK_IN_TESTS = os.environ.get('ENABLE_TIMER_TICK_IN_TESTS', '').lower() in {'1', 'true', 'yes', 'on'}
    # Comma-separated list of frontend origins
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,http://127.0.0.1:8080',
        ).split(',') if o.strip()
    ]
