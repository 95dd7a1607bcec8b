import os

from config import config
from debliss import create_app

app = create_app(config[os.getenv('FLASK_CONFIG', 'default')])


if __name__ == '__main__':
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=False)
