from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from infinity_server.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config['CORS_ORIGINS']
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Each app owns its registry; handlers look the coordinator up per request
    from infinity_server.coordinator import SessionCoordinator
    from infinity_server.matchmaking import Matchmaker, RoomIdGenerator
    from infinity_server.rooms import RoomRegistry
    from infinity_server.socketio_events import SocketIOPublisher, register_socketio_handlers

    namespace = flask_app.config['SOCKETIO_NAMESPACE']
    registry = RoomRegistry(
        max_rooms=flask_app.config['MAX_ROOMS'],
        hash_method=flask_app.config['PASSCODE_HASH_METHOD'],
    )
    id_generator = RoomIdGenerator(
        length=flask_app.config['ROOM_ID_LENGTH'],
        max_attempts=flask_app.config['ROOM_ID_MAX_ATTEMPTS'],
    )
    flask_app.extensions['room_coordinator'] = SessionCoordinator(
        registry,
        SocketIOPublisher(socketio, namespace=namespace),
        matchmaker=Matchmaker(registry, id_generator),
        logger=flask_app.logger,
    )
    register_socketio_handlers(namespace=namespace)

    from infinity_server.main import main
    flask_app.register_blueprint(main)

    @click.command('rooms')
    def rooms_command():
        """Lists the open rooms and who is seated in them."""
        coordinator = flask_app.extensions['room_coordinator']
        summary = coordinator.rooms_summary()
        if not summary:
            click.echo('No open rooms.')
            return
        for room in summary:
            click.echo(
                f"{room['roomId']}\t{'public' if room['public'] else 'private'}"
                f"\tX={'yes' if room['xConnected'] else 'no'}"
                f"\tO={'yes' if room['oConnected'] else 'no'}"
            )
        click.echo(f"{len(summary)}/{coordinator.registry.max_rooms} rooms open")

    flask_app.cli.add_command(rooms_command)

    return flask_app
