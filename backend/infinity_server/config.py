import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Browser origins allowed to open a socket (comma separated)
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:5173,https://infinity-tictactoe.vercel.app'
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Open rooms allowed at once; joins that would open one more are refused
    MAX_ROOMS = int(os.environ.get('MAX_ROOMS', '10'))
    # Matchmaker room ids
    ROOM_ID_LENGTH = int(os.environ.get('ROOM_ID_LENGTH', '6'))
    ROOM_ID_MAX_ATTEMPTS = int(os.environ.get('ROOM_ID_MAX_ATTEMPTS', '5'))
    # werkzeug.security hash method for room passcodes
    PASSCODE_HASH_METHOD = os.environ.get('PASSCODE_HASH_METHOD', 'pbkdf2:sha256')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
