from flask_mail import Mail
from flask_cors import CORS


mail = Mail()
cors = CORS()
