import os


class Config:
    HOST = os.environ.get('CHARCHITTI_HOST', '127.0.0.1')
    PORT = int(os.environ.get('CHARCHITTI_PORT', '8000'))
    LOG_LEVEL = os.environ.get('CHARCHITTI_LOG_LEVEL', 'INFO').upper()
    ALLOWED_ORIGINS = [o.strip() for o in os.environ.get('ALLOWED_ORIGINS', '*').split(',') if o.strip()]
    # Seconds an empty room survives before it is dropped (0 prunes immediately)
    ROOM_PRUNE_DELAY_SEC = float(os.environ.get('ROOM_PRUNE_DELAY_SEC', '300'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
