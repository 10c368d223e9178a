"""
Local Flask target for the load tests, served on an ephemeral port from a
background thread.
"""

import threading
import time

import pytest
from flask import Flask, Response, jsonify, redirect, request
from werkzeug.serving import make_server

app = Flask(__name__)

hits = {"count": 0}
hits_lock = threading.Lock()


@app.route('/ok', methods=['GET', 'POST', 'PUT'])
def ok():
    with hits_lock:
        hits["count"] += 1
    return "ok", 200


@app.route('/status/<int:code>', methods=['GET', 'POST'])
def status(code):
    return f"status {code}", code


@app.route('/redirect/<int:remaining>', methods=['GET', 'POST'])
def redirect_chain(remaining):
    """Redirect `remaining` more times, then answer 200."""
    if remaining > 0:
        return redirect(f"/redirect/{remaining - 1}", code=302)
    return "done", 200


@app.route('/echo', methods=['GET', 'POST', 'PUT'])
def echo():
    return jsonify({
        'method': request.method,
        'body': request.get_data(as_text=True),
        'headers': dict(request.headers),
    }), 200


@app.route('/utf8-no-charset', methods=['GET'])
def utf8_no_charset():
    return Response("h\u00e9llo \u2603".encode("utf-8"), content_type="text/html")


@app.route('/latin1', methods=['GET'])
def latin1():
    return Response("h\u00e9llo".encode("latin-1"), content_type="text/plain; charset=iso-8859-1")


@app.route('/slow', methods=['GET'])
def slow():
    time.sleep(float(request.args.get('delay', '1.0')))
    return "slow", 200


@pytest.fixture(scope="session")
def target():
    """Base URL of the running target server."""
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture
def reset_hits():
    with hits_lock:
        hits["count"] = 0
    return hits
