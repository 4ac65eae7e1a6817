"""
app.py - Classroom Rewards backend
JSON API for the points tracker. Logged-in teachers work against the SQL
store; without a session the same API runs on the offline cache.
"""

import os
import sys
import logging
from functools import wraps
from logging import StreamHandler
from logging.handlers import RotatingFileHandler
from flask import Flask, request, jsonify, session
from flask_babel import Babel, gettext

import alerts
import auth
import config
from db_session import SessionLocal, init_db
from errors import PointsError, ValidationFailure
from history_log import HistoryLog
from local_cache import LocalCache
from student_store import store_for_owner

# ---- 1. App Setup ----
app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.config['SESSION_FACTORY'] = SessionLocal
app.config['LOCAL_CACHE'] = LocalCache(config.LOCAL_CACHE_PATH)

EXAMPLE_ROSTER = ("Aisha", "Bilal", "Zara")

# ---- 2. Babel Localization Setup ----
def get_locale():
    if 'lang' in request.args:
        lang = request.args['lang']
        if lang in app.config['LANGUAGES']:
            return lang
    return request.accept_languages.best_match(app.config['LANGUAGES'].keys())

app.config['BABEL_DEFAULT_LOCALE'] = 'en'
app.config['BABEL_TRANSLATION_DIRECTORIES'] = os.path.join(config.APP_DIR, 'translations')
app.config['LANGUAGES'] = config.LANGUAGES

babel = Babel(app, locale_selector=get_locale)

# ---- 3. Logging Setup ----
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'

class EmailAlertHandler(logging.Handler):
    def emit(self, record):
        # Records from the alert module itself would loop back here.
        if record.levelno < logging.ERROR or record.name == alerts.logger.name:
            return
        try:
            msg = self.format(record)
            alerts.send_alert(subject=f"Application Error: {record.levelname}", message=msg)
        except Exception:
            self.handleError(record)

def configure_logging(log_dir=None):
    log_dir = log_dir or config.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, 'app.log')

    file_handler = RotatingFileHandler(log_path, maxBytes=500000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    email_handler = EmailAlertHandler()
    email_handler.setLevel(logging.ERROR)
    email_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(email_handler)
    return log_path

LOG_PATH = configure_logging()
logger = logging.getLogger(__name__)

# ---- 4. Store Resolution ----
def current_owner():
    """The logged-in account id, or None for the offline cache."""
    return session.get('account_id')

def with_student_store(f):
    """Hands the view the store that matches the caller's session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        store = store_for_owner(current_owner(), app.config['SESSION_FACTORY'], app.config['LOCAL_CACHE'])
        return f(store, *args, **kwargs)
    return decorated_function

def reward_message(student):
    return gettext("%(name)s reached %(threshold)s points and earned a reward!",
                   name=student.name, threshold=config.REWARD_THRESHOLD)

@app.errorhandler(PointsError)
def handle_points_error(e):
    if e.status_code >= 500:
        logger.warning(f"{request.method} {request.path} failed: {e}")
    return jsonify({"success": False, "message": gettext(e.message)}), e.status_code

# ---- 5. Auth Routes ----
def _login(account):
    session['account_id'] = account.id
    session['email'] = account.email

@app.route('/api/bootstrap/register', methods=['POST'])
def api_bootstrap_register():
    data = request.get_json(silent=True) or {}
    db = app.config['SESSION_FACTORY']()
    try:
        account = auth.bootstrap_register(db, data.get('email'), data.get('password'))
        _login(account)
    finally:
        db.close()
    return jsonify({"success": True, "email": session['email']}), 201

@app.route('/api/login', methods=['POST'])
def api_login():
    data = request.get_json(silent=True) or {}
    db = app.config['SESSION_FACTORY']()
    try:
        account = auth.authenticate(db, data.get('email'), data.get('password'))
        _login(account)
    finally:
        db.close()
    logger.info(f"Login: {session['email']}")
    return jsonify({"success": True, "email": session['email']}), 200

@app.route('/api/logout', methods=['POST'])
def api_logout():
    session.pop('account_id', None)
    session.pop('email', None)
    return jsonify({"success": True}), 200

@app.route('/api/session', methods=['GET'])
def api_session():
    return jsonify({"authenticated": current_owner() is not None, "email": session.get('email')}), 200

# ---- 6. Student API ----
def seed_example_roster(store, cache):
    """
    Fills a brand-new offline cache with the example roster. The check and the
    inserts share one unit of work under the cache lock, so it runs at most once.
    """
    with store.backend.transaction():
        if not cache.is_new or store.backend.list_records():
            return False
        for name in EXAMPLE_ROSTER:
            store.create(name)
    logger.info("Seeded offline cache with the example roster")
    return True

@app.route('/api/students', methods=['GET'])
@with_student_store
def api_list_students(store):
    if current_owner() is None:
        seed_example_roster(store, app.config['LOCAL_CACHE'])
    students = store.list()
    return jsonify({"success": True, "students": [s.to_dict() for s in students]}), 200

@app.route('/api/students', methods=['POST'])
@with_student_store
def api_create_student(store):
    data = request.get_json(silent=True) or {}
    student = store.create(data.get('name'))
    return jsonify({"success": True, "student": student.to_dict(),
                    "message": gettext("Added %(name)s", name=student.name)}), 201

@app.route('/api/students/<student_id>', methods=['DELETE'])
@with_student_store
def api_remove_student(store, student_id):
    store.remove(student_id)
    return jsonify({"success": True}), 200

@app.route('/api/students/<student_id>/adjust', methods=['POST'])
@with_student_store
def api_adjust_points(store, student_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'delta' not in data:
        raise ValidationFailure("Missing Data")
    outcome = store.adjust(student_id, data.get('delta'), data.get('reason'))
    return jsonify({
        "success": True,
        "student": outcome.student.to_dict(),
        "rewards_earned": outcome.rewards_earned,
        "reward_fired": outcome.reward_fired,
        "reward_message": reward_message(outcome.student) if outcome.reward_fired else None,
    }), 200

@app.route('/api/students/<student_id>/history', methods=['GET'])
@with_student_store
def api_student_history(store, student_id):
    limit = request.args.get('limit', type=int) or config.HISTORY_LIMIT
    limit = max(1, min(limit, config.HISTORY_LIMIT))
    entries = store.history(student_id, limit)
    return jsonify({"success": True, "history": HistoryLog(entries).with_changes(limit)}), 200

@app.route('/api/health')
def api_health():
    return jsonify({"ok": True})

if __name__ == '__main__':
    init_db()
    app.run(debug=True, port=int(os.getenv("PORT", 5000)))
