#!/usr/bin/env python3
"""
Main entry point for the Gym Suite API
"""
import os
from gymsuite import create_app, db
from gymsuite.models import (
    Gym, Profile, Setting, Coach, Member, Visit,
    TrainingSession, SessionParticipant, Payment, Message, Alert
)

# Create the Flask application
app = create_app(os.getenv('FLASK_ENV', 'development'))


@app.shell_context_processor
def make_shell_context():
    """Make database models available in flask shell"""
    return {
        'db': db,
        'Gym': Gym,
        'Profile': Profile,
        'Setting': Setting,
        'Coach': Coach,
        'Member': Member,
        'Visit': Visit,
        'TrainingSession': TrainingSession,
        'SessionParticipant': SessionParticipant,
        'Payment': Payment,
        'Message': Message,
        'Alert': Alert
    }


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5001, debug=True, use_reloader=False)
