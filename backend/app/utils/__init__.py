from .errors import error_response, transition_error
from .fields import read_field, read_path
