from relay.controller import configure_logging, create_app
from relay.constants import APP_HOST, APP_PORT, DEBUG_MODE


configure_logging()
app = create_app()

if __name__ == '__main__':
    # use_reloader=False evita carregar as rotas duas vezes quando DEBUG_MODE está ativo
    app.run(host=APP_HOST, port=APP_PORT, debug=DEBUG_MODE, use_reloader=False)
