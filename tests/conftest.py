from __future__ import annotations

import json
from pathlib import Path
from textwrap import dedent

import pytest


MAIN_JS = dedent(
	"""
	const { app, ipcMain } = require('electron');
	const MAX_WINDOWS = 4;
	const channelName = 'dynamic';

	ipcMain.on('market-data', (event, payload) => {
		event.reply('ack', payload);
	});
	ipcMain.handle('custom-channel', async () => null);
	ipcMain.on(channelName, () => {});
	"""
)

WINDOW_MANAGER_JS = dedent(
	"""
	import { BrowserWindow } from 'electron';

	export class WindowManager {
		constructor(options) {
			this.options = options;
		}

		async createWindow(type, { width, height }) {
			return new BrowserWindow({ width, height });
		}

		close(id = 0) {}
	}

	const WindowState = { bounds: Object, maximized: boolean };
	"""
)

BROKEN_JS = dedent(
	"""
	class Broken {
		method( {
	"""
)

WEBSOCKET_PY = dedent(
	"""
	URL = "wss://socket.polygon.io/stocks"
	MAX_RECONNECT_ATTEMPTS = 5


	class PolygonWebSocketClient:
		def on_message(self, msg):
			pass

		def on_error(self, err):
			pass

		def connect(self):
			pass
	"""
)

VALIDATORS_PY = dedent(
	"""
	def validate_price(price):
		return 0 < price < 100000

	def validate_volume(volume):
		return volume >= 0
	"""
)


def write(root: Path, rel: str, text: str) -> Path:
	path = root / rel
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


@pytest.fixture
def sample_root(tmp_path: Path) -> Path:
	root = tmp_path / "alpha"
	write(root, "electron/main.js", MAIN_JS)
	write(root, "electron/src/main/WindowManager.js", WINDOW_MANAGER_JS)
	write(root, "electron/src/main/Broken.js", BROKEN_JS)
	write(root, "electron/src/main/node_modules/dep.js", "export const dep = 1;\n")
	write(root, "electron/src/main/vendor.min.js", "var a=1;\n")
	write(root, "polygon/__init__.py", "")
	write(root, "polygon/websocket.py", WEBSOCKET_PY)
	write(root, "polygon/validators/quotes.py", VALIDATORS_PY)
	write(root, "polygon/validators/deep/too_deep.py", "def validate_hidden():\n    pass\n")
	write(root, "polygon/notes.txt", "not source\n")
	write(
		root,
		"electron/package.json",
		json.dumps(
			{
				"dependencies": {"ag-grid-community": "31.0.0"},
				"devDependencies": {"electron": "^28.0.0"},
				"engines": {"node": ">=18"},
			}
		),
	)
	write(root, "requirements.txt", "websockets==12.0\npydantic==2.5.0\n# comment\nrequests\n")
	return root
