from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from therapy_practice import login_manager
from therapy_practice.auth.forms import LoginForm
from therapy_practice.errors import AuthorizationError
from therapy_practice.models.user import User
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import load_form

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


@auth_bp.route('/login', methods=['POST'])
def login():
    form = load_form(LoginForm)
    user = User.query.filter_by(email=form.email.data).first()

    if not user or not user.check_password(form.password.data):
        log_audit('attempt', 'login', user.id if user else None,
                  {'email': form.email.data, 'reason': 'invalid_credentials'})
        raise AuthorizationError("Invalid email or password")

    if not user.is_active:
        log_audit('attempt', 'login', user.id, {'email': form.email.data, 'reason': 'account_inactive'})
        raise AuthorizationError("This account is deactivated")

    login_user(user, remember=form.remember_me.data)
    log_audit('perform', 'login', user.id, {
        'email': user.email,
        'user_agent': request.user_agent.string,
        'remember_me': form.remember_me.data
    })
    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_audit('perform', 'logout', current_user.id, {'email': current_user.email})
    logout_user()
    return jsonify({'message': 'Logged out'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
