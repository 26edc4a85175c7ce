import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list; '*' accepts any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Delay between a successful card play and the turn handover (seconds)
    TURN_DELAY_SEC = float(os.environ.get('TURN_DELAY_SEC', '2'))
    # How long a session lingers after a participant drops. 0 tears down immediately.
    DISCONNECT_TEARDOWN_SEC = float(os.environ.get('DISCONNECT_TEARDOWN_SEC', '0'))
    # Final screen hold time before a finished session is discarded (seconds)
    GAME_OVER_TEARDOWN_SEC = float(os.environ.get('GAME_OVER_TEARDOWN_SEC', '30'))
    # Deal size and copies of each catalog card per session
    HAND_SIZE = int(os.environ.get('HAND_SIZE', '5'))
    CARD_COPIES = int(os.environ.get('CARD_COPIES', '4'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
