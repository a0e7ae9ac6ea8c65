import asyncio
import sys

from dotenv import load_dotenv
from nicegui import ui

from levercalc.config import APP_TITLE, HOST, PORT
from levercalc.frontend import init_ui
from levercalc.logger import log

load_dotenv()

if sys.platform.startswith('win'):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

init_ui()


def run():
    log.info(f"🚀 Starting {APP_TITLE} on {HOST}:{PORT}...")
    ui.run(
        title=APP_TITLE,
        host=HOST,
        port=PORT,
        reload=False,
        show=False,
        favicon="📈",
        reconnect_timeout=10.0,
    )


if __name__ in {"__main__", "__mp_main__"}:
    run()
