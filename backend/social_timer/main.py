from flask import Blueprint, jsonify, current_app
from social_timer import get_timer

main = Blueprint('main', __name__)


@main.route('/')
def index():
    reading = get_timer().get_elapsed()
    return jsonify({
        'message': 'Welcome to the social timer!',
        'title': current_app.config.get('TIMER_TITLE'),
        'timer': reading.to_dict(),
    })


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'subscribers': get_timer().subscriber_count()})
