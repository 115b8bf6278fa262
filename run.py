"""Project root entry point for launching the web interface."""

from __future__ import annotations

from jarloc.web import create_app


def main():
    app = create_app()
    app.run(host="0.0.0.0", port=5500, debug=False, threaded=True)


if __name__ == "__main__":
    main()
