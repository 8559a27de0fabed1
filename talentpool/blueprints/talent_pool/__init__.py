from flask import Blueprint
bp = Blueprint("talent_pool", __name__)
from . import routes  # noqa
