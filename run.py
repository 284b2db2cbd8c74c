# run.py
"""
run.py
Development server entry point: initialises the database, then serves the
API with the Flask dev server. Production deployments point a WSGI server at
printhub.app_factory:create_app instead.
"""
import os

from printhub.app_factory import create_app
from printhub.db.auto_init import auto_init


def main():
    # 1️⃣ 创建 Flask app (also binds the database engine)
    app = create_app()

    # 2️⃣ 启动前初始化数据库
    auto_init()

    # 3️⃣ 启动参数
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "0") == "1"

    # 4️⃣ 启动服务
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
