# Models package
from .gym import Gym, Profile, Setting
from .coach import Coach
from .member import Member, Visit
from .session import TrainingSession, SessionParticipant
from .payment import Payment
from .message import Message, Alert
