import os


def _env_flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///social_timer.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Keep the last reset across restarts (off: every start begins at zero)
    TIMER_PERSIST_EPOCH = _env_flag('TIMER_PERSIST_EPOCH')
    # How many recent reset tokens are remembered for de-duplication. 0 disables.
    RESET_TOKEN_CACHE_SIZE = int(os.environ.get('RESET_TOKEN_CACHE_SIZE', '256'))
    # Keep-alive comment interval on the SSE stream (seconds)
    SSE_KEEPALIVE_SEC = int(os.environ.get('SSE_KEEPALIVE_SEC', '15'))
    TIMER_TITLE = os.environ.get('TIMER_TITLE', 'Sekunden ohne LinkedIn Vorschlag')
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',')
        if origin.strip()
    ]
