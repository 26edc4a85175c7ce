from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    lobby = current_app.extensions['lobby']
    return jsonify({
        'status': 'Mathematical Card Battle Game Server Running',
        'players': lobby.waiting_count,
        'activeGames': lobby.active_count,
    })

@main.route('/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': datetime.now(timezone.utc).isoformat()})
