# app.py
import os
import logging
from urllib.parse import quote_plus

import socketio
from dotenv import load_dotenv
from flask import Flask, jsonify, request, make_response
from flask_cors import CORS
from flask_compress import Compress
from werkzeug.exceptions import HTTPException

from database import db
from routes.usuario import usuario_bp
from routes.produto import produto_bp
from routes.carrinho import carrinho_bp
from routes.pedido import pedido_bp
from routes.pedido_admin import pedido_admin_bp
from routes.avaliacao import avaliacao_bp
from routes.estoque import estoque_bp
from routes.venda import venda_bp
from routes.dashboard import dashboard_bp
from services.notificacao_service import NotificadorNulo, NotificadorSocketIO, criar_servidor_socketio
from utils.errors import AppError

# =============================================================================
# Sorveteria Delícia - API da loja
# -----------------------------------------------------------------------------
# create_app() monta a aplicação:
#   - .env (dev) + variáveis de ambiente (Railway em produção)
#   - SQLAlchemy (MySQL via mysql-connector; SQLite como fallback local)
#   - CORS + Compress
#   - blueprints por recurso
#   - AppError -> {"success": False, "error": ...} com o status do erro
#   - Socket.IO (salas user_<id>) para notificar pedidos
# =============================================================================

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# .env local (dev). Em produção o Railway injeta as ENVs.
# -----------------------------------------------------------------------------
def _load_env():
    """Carrega variáveis do .env em ambiente de desenvolvimento (sem erro se ausente)."""
    base_dir = os.path.abspath(os.path.dirname(__file__))
    env_path = os.path.join(base_dir, ".env")
    if os.path.isfile(env_path):
        load_dotenv(env_path, override=False)
    else:
        load_dotenv(override=False)


# -----------------------------------------------------------------------------
# DB URI (Railway ou local)
# -----------------------------------------------------------------------------
def _build_db_uri() -> str:
    """Monta a URI do MySQL a partir das ENVs do Railway; senão DATABASE_URL ou SQLite local."""
    if os.getenv("MYSQLHOST"):
        host = os.getenv("MYSQLHOST")
        user = os.getenv("MYSQLUSER")
        password = os.getenv("MYSQLPASSWORD")
        database = os.getenv("MYSQLDATABASE")
        port = os.getenv("MYSQLPORT", "3306")

        missing = [k for k, v in {
            "MYSQLHOST": host, "MYSQLUSER": user, "MYSQLPASSWORD": password, "MYSQLDATABASE": database
        }.items() if not v]
        if missing:
            raise RuntimeError(f"Variáveis de ambiente ausentes para o DB: {', '.join(missing)}")

        pwd = quote_plus(password)
        return f"mysql+mysqlconnector://{user}:{pwd}@{host}:{port}/{database}"

    return os.getenv("DATABASE_URL", "sqlite:///sorveteria.db")


def _flag(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _register_blueprints(app):
    app.register_blueprint(usuario_bp, url_prefix="/usuarios")
    app.register_blueprint(produto_bp, url_prefix="/produtos")
    app.register_blueprint(carrinho_bp, url_prefix="/carrinho")
    app.register_blueprint(pedido_bp, url_prefix="/pedidos")
    app.register_blueprint(pedido_admin_bp, url_prefix="/admin/pedidos")
    app.register_blueprint(avaliacao_bp, url_prefix="/avaliacoes")
    app.register_blueprint(estoque_bp, url_prefix="/estoque")
    app.register_blueprint(venda_bp, url_prefix="/vendidos")
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")


def _register_error_handlers(app):
    @app.errorhandler(AppError)
    def app_error(e):
        """Erros de domínio levantados pelos serviços."""
        if e.status >= 500:
            log.error("Erro %s em %s %s: %s", e.status, request.method, request.path, e.message)
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(404)
    def not_found(e):
        """Handler para rotas inexistentes (404)."""
        return jsonify({"success": False, "error": "Rota não encontrada."}), 404

    @app.errorhandler(Exception)
    def internal_error(e):
        """Handler global: HTTPException mantém o código; o resto vira 500 genérico com log."""
        if isinstance(e, HTTPException):
            return jsonify({"success": False, "error": e.description}), e.code
        log.exception("Erro interno não tratado")
        return jsonify({"success": False, "error": "Erro interno do servidor."}), 500


def create_app(config_overrides=None, notifier=None) -> Flask:
    """Fábrica da aplicação.

    Args:
        config_overrides: chaves de config aplicadas por cima das ENVs (testes).
        notifier: Notificador injetado; sem ele, Socket.IO (REALTIME_ENABLED) ou no-op.
    """
    _load_env()

    app = Flask(__name__)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    app.config.update(
        SQLALCHEMY_DATABASE_URI=_build_db_uri(),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SECRET_KEY=os.getenv("SECRET_KEY", "change-me-in-prod"),
        CORS_ORIGINS=os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"),
        CREATE_SCHEMA=_flag(os.getenv("CREATE_SCHEMA", "0")),
        REALTIME_ENABLED=_flag(os.getenv("REALTIME_ENABLED", "1")),
    )
    if config_overrides:
        app.config.update(config_overrides)

    if not app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_pre_ping": True,
            "pool_recycle": 280,
        })

    app.json.sort_keys = False
    app.json.ensure_ascii = False

    # -------------------------------------------------------------------------
    # CORS + Compress (com fallback manual para erros 500)
    # -------------------------------------------------------------------------
    origins = app.config["CORS_ORIGINS"]
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins, "supports_credentials": True}})
    app.config.setdefault("COMPRESS_MIMETYPES", ["application/json", "text/json", "text/plain"])
    Compress(app)

    def _add_cors_headers(resp):
        """Aplica cabeçalhos CORS conforme origem permitida, incluindo credenciais e métodos."""
        origin = request.headers.get("Origin")
        if origin and origin in origins:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Vary"] = "Origin"
            resp.headers["Access-Control-Allow-Credentials"] = "true"
            resp.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
            resp.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        return resp

    @app.before_request
    def _preflight():
        """Atende requisições OPTIONS (CORS preflight) com 204 e cabeçalhos adequados."""
        if request.method == "OPTIONS":
            return _add_cors_headers(make_response("", 204))

    @app.after_request
    def _after(resp):
        return _add_cors_headers(resp)

    # -------------------------------------------------------------------------
    # DB init + criação opcional do schema
    # -------------------------------------------------------------------------
    from database import models  # noqa: F401  registra os modelos no metadata

    db.init_app(app)
    if app.config["CREATE_SCHEMA"]:
        with app.app_context():
            db.create_all()
            log.info("Schema criado/validado.")

    # -------------------------------------------------------------------------
    # Notificações
    # -------------------------------------------------------------------------
    if notifier is None and app.config["REALTIME_ENABLED"]:
        sio = criar_servidor_socketio(origins, app.config["SECRET_KEY"])
        notifier = NotificadorSocketIO(sio)
        app.extensions["socketio"] = sio
        app.wsgi_app = socketio.WSGIApp(sio, app.wsgi_app)
        log.info("Socket.IO habilitado (salas user_<id>).")
    app.extensions["notificador"] = notifier or NotificadorNulo()

    _register_blueprints(app)
    _register_error_handlers(app)

    @app.route("/")
    def home():
        """Rota raiz: indica que a API está ativa."""
        return jsonify({"success": True, "message": "API Sorveteria Delícia ativa."}), 200

    @app.route("/health")
    def health():
        """Healthcheck simples para monitoramento."""
        return jsonify({"status": "ok"}), 200

    return app


# -----------------------------------------------------------------------------
# Execução
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("PORT", "5000"))
    debug = os.getenv("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug, host="0.0.0.0", port=port)
