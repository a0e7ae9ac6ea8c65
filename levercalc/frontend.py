import json

from fastapi import Request
from nicegui import ui

from levercalc.config import (
    APP_TITLE, LONG, POSITION_TYPES, TRENDING_TICK_SECONDS, INVERSE,
)
from levercalc.formatting import (
    format_currency, format_price, format_percent, format_volume, format_leverage,
)
from levercalc.live_price import UP, DOWN
from levercalc.market_data import BybitMarketClient
from levercalc.search import RESULTS, NO_MATCHES, ERROR
from levercalc.session import PageSession
from levercalc.url_state import build_query, restore_state

STYLES = '''
<style>
    @import url('https://fonts.googleapis.com/css2?family=Roboto+Mono:wght@500;700&family=Inter:wght@400;600;700&display=swap');
    body { background-color: #0b1120; color: #e2e8f0; font-family: 'Inter', sans-serif; }
    .mono { font-family: 'Roboto Mono', monospace; }
    .card-dark { background: rgba(17, 24, 39, 0.7); border: 1px solid rgba(55, 65, 81, 0.5); border-radius: 0.75rem; }
    .pair-row:hover { background: #1e293b; cursor: pointer; }
    .pos-change { color: #4ade80; font-weight: 600; }
    .neg-change { color: #f87171; font-weight: 600; }
    .flash-up { color: #4ade80 !important; }
    .flash-down { color: #f87171 !important; }
</style>
'''


def init_ui():
    @ui.page('/')
    def main_page(request: Request):
        session = PageSession(BybitMarketClient())
        session.bind(ui.context.client)
        client = session.client
        state, search = session.state, session.search
        trending, monitor = session.trending, session.monitor
        link_params = dict(request.query_params)

        # revision of each section at its last render
        rendered = {'search': -1, 'trending': -1, 'price': -1}

        ui.add_head_html(STYLES)

        with ui.column().classes('w-full max-w-4xl mx-auto p-6 gap-6'):
            # === HEADER ===
            with ui.column().classes('w-full items-center gap-1'):
                ui.label(APP_TITLE).classes('text-4xl font-black tracking-tight text-cyan-400')
                ui.label('Calculate profits with precision for perpetual futures').classes('text-slate-400')

            # === SEARCH ===
            with ui.card().classes('w-full card-dark p-6 gap-3'):
                with ui.row().classes('w-full items-center gap-3'):
                    search_input = ui.input(
                        placeholder='Search perpetual pairs (e.g. BTC, ETH, SOL)...',
                        on_change=lambda e: search.submit(e.value),
                    ).props('dark outlined clearable').classes('flex-1')
                    search_spinner = ui.spinner('dots', size='lg', color='cyan')
                    search_spinner.set_visibility(False)
                message_label = ui.label().classes('text-sm')
                message_label.set_visibility(False)
                search_container = ui.column().classes('w-full gap-1')

            # === TRENDING (initial state) ===
            trending_section = ui.card().classes('w-full card-dark p-6 gap-3')
            with trending_section:
                with ui.row().classes('w-full items-center justify-between'):
                    ui.label('🔥 TRENDING PERPETUALS').classes('text-lg font-black tracking-tight')
                    ui.label('Top by 24h volume').classes('text-xs text-slate-400')
                countdown_bar = ui.linear_progress(value=1.0, show_value=False, size='4px', color='cyan')
                trending_container = ui.element('div').classes('w-full grid grid-cols-2 md:grid-cols-4 gap-3')

            # === CALCULATOR (pair selected) ===
            calculator_section = ui.column().classes('w-full gap-6')
            calculator_section.set_visibility(False)
            with calculator_section:
                with ui.card().classes('w-full card-dark p-6 gap-2'):
                    with ui.row().classes('w-full items-center justify-between'):
                        with ui.column().classes('gap-0'):
                            pair_label = ui.label().classes('text-2xl font-black')
                            category_label = ui.label().classes('text-xs text-slate-400 uppercase font-bold')
                        ui.button('Reset', icon='close', on_click=lambda: reset()).props('flat color=grey')
                    with ui.row().classes('items-center gap-3'):
                        price_label = ui.label('N/A').classes('text-3xl font-bold mono')
                        direction_icon = ui.icon('trending_flat', size='md')
                        direction_icon.set_visibility(False)
                        live_badge = ui.badge('LIVE', color='green')
                        live_badge.set_visibility(False)
                    updated_label = ui.label().classes('text-xs text-slate-500')
                    leverage_info_label = ui.label().classes('text-xs text-slate-400')

                with ui.card().classes('w-full card-dark p-6 gap-4'):
                    ui.label('POSITION').classes('text-xs font-bold text-slate-400')
                    position_toggle = ui.toggle(
                        POSITION_TYPES, value=LONG,
                        on_change=lambda e: on_position(e.value),
                    ).props('spread no-caps')

                    with ui.row().classes('w-full items-center gap-4'):
                        ui.label('Leverage').classes('text-xs font-bold text-slate-400')
                        leverage_value_label = ui.label(format_leverage(state.leverage)).classes('mono font-bold text-cyan-300')
                    leverage_slider = ui.slider(
                        min=1, max=100, step=0.01, value=state.leverage,
                        on_change=lambda e: on_leverage(e.value),
                    ).props('label color=cyan')

                    entry_input = ui.input(
                        label='Entry amount (USDT)',
                        on_change=lambda e: on_entry(e.value),
                    ).props('dark outlined type=number').classes('w-full')

                    ui.label('TARGET PRICES').classes('text-xs font-bold text-slate-400')
                    with ui.row().classes('w-full gap-3'):
                        target_inputs = []
                        for index in range(len(state.targets)):
                            label = 'Target 1 (required)' if index == 0 else f'Target {index + 1} (optional)'
                            target_inputs.append(ui.input(
                                label=label,
                                on_change=lambda e, i=index: on_target(i, e.value),
                            ).props('dark outlined type=number').classes('flex-1'))

                with ui.card().classes('w-full card-dark p-6 gap-3'):
                    ui.label('PROJECTED RESULTS').classes('text-xl font-black tracking-tight')
                    results_container = ui.column().classes('w-full gap-2')

            ui.label(
                'Not Financial Advice: This calculator is for educational and informational purposes only. '
                'Market conditions, fees, and slippage may affect actual outcomes.'
            ).classes('text-xs text-slate-500 text-center w-full')

        # === MESSAGES ===
        def show_message(text, kind='error'):
            if not text:
                message_label.set_visibility(False)
                return
            color = 'text-red-400' if kind == 'error' else 'text-amber-400'
            message_label.set_text(text)
            message_label.classes(replace=f'text-sm {color}')
            message_label.set_visibility(True)

        # === URL SYNC ===
        def sync_url():
            query = build_query(state)
            ui.run_javascript(
                f"history.replaceState({{}}, '', window.location.pathname + {json.dumps(query)})"
            )

        # === RENDERS ===
        def render_search():
            search_container.clear()
            outcome = search.outcome
            if outcome.status == ERROR:
                show_message(outcome.message, 'error')
            elif outcome.status == NO_MATCHES:
                show_message(outcome.message, 'info')
            else:
                show_message('')

            if outcome.status != RESULTS:
                return
            for instrument in outcome.pairs:
                with search_container:
                    with ui.row().classes('w-full px-4 py-3 rounded-lg items-center justify-between pair-row') \
                            .on('click', lambda _, i=instrument: select_pair(i)):
                        with ui.column().classes('gap-0'):
                            ui.label(instrument.symbol).classes('font-bold')
                            ui.label(instrument.category_label).classes('text-xs text-slate-400')
                        ui.badge(f"up to {format_leverage(instrument.max_leverage)}",
                                 color='purple' if instrument.category == INVERSE else 'cyan')

        def render_trending():
            trending_container.clear()
            if not trending.pairs:
                with trending_container:
                    ui.spinner('dots', size='lg', color='cyan')
                return
            for pair in trending.pairs:
                with trending_container:
                    with ui.card().classes('card-dark p-3 gap-1 pair-row') \
                            .on('click', lambda _, i=pair.instrument: select_pair(i)):
                        with ui.row().classes('w-full items-center justify-between'):
                            ui.label(pair.symbol).classes('font-bold text-sm')
                            if pair.is_hot:
                                ui.badge('HOT', color='orange')
                        ui.label(format_price(pair.last_price)).classes('mono font-bold')
                        change = pair.price_change_percent
                        cls = 'pos-change' if change >= 0 else 'neg-change'
                        arrow = '▲' if change >= 0 else '▼'
                        ui.label(f"{arrow} {format_percent(change)}").classes(f'mono text-sm {cls}')
                        ui.label(f"Vol: {format_volume(pair.volume_24h)}").classes('text-xs text-slate-400 mono')

        def render_price():
            price_label.set_text(format_price(monitor.price))
            live_badge.set_visibility(monitor.active)
            if monitor.last_update:
                updated_label.set_text(f"Last updated: {monitor.last_update.strftime('%H:%M:%S')}")
            else:
                updated_label.set_text('')

            if monitor.direction == UP:
                direction_icon.set_name('trending_up')
                price_label.classes(add='flash-up', remove='flash-down')
                direction_icon.set_visibility(True)
            elif monitor.direction == DOWN:
                direction_icon.set_name('trending_down')
                price_label.classes(add='flash-down', remove='flash-up')
                direction_icon.set_visibility(True)
            else:
                price_label.classes(remove='flash-up flash-down')
                direction_icon.set_visibility(False)

        def render_results():
            results_container.clear()
            results = state.results(monitor.price)
            with results_container:
                if not results:
                    ui.label('Enter an entry amount and at least Target 1 to see projections.') \
                        .classes('w-full text-center text-slate-400 py-6 italic')
                    return
                for result in results:
                    color = 'text-green-400' if result.is_profit else 'text-red-400'
                    with ui.card().classes('w-full card-dark p-4 gap-1'):
                        with ui.row().classes('w-full items-center justify-between'):
                            ui.label(f"Target {result.target_index}").classes('font-bold')
                            ui.label(format_price(result.target_price)).classes('mono text-cyan-300')
                        with ui.row().classes('w-full gap-6'):
                            with ui.column().classes('gap-0'):
                                ui.label('P&L').classes('text-xs text-slate-400')
                                ui.label(format_currency(result.pnl)).classes(f'mono font-bold {color}')
                            with ui.column().classes('gap-0'):
                                ui.label('ROI').classes('text-xs text-slate-400')
                                ui.label(format_currency(result.roi, decimals=2, prefix='', suffix='%')) \
                                    .classes(f'mono font-bold {color}')
                            with ui.column().classes('gap-0'):
                                ui.label('Fees').classes('text-xs text-slate-400')
                                ui.label(format_currency(result.fees)).classes('mono font-bold text-orange-400')
                            with ui.column().classes('gap-0'):
                                ui.label('Final').classes('text-xs text-slate-400')
                                ui.label(format_currency(result.final_amount)).classes('mono font-bold text-cyan-400')

        def show_calculator():
            instrument = state.instrument
            pair_label.set_text(instrument.symbol)
            category_label.set_text(instrument.category_label)
            leverage_info_label.set_text(
                f"Leverage: {format_leverage(instrument.min_leverage)} - {format_leverage(instrument.max_leverage)}"
            )
            leverage_slider.props(f'min={instrument.min_leverage} max={instrument.max_leverage}')
            leverage_slider.value = state.leverage
            leverage_value_label.set_text(format_leverage(state.leverage))
            position_toggle.value = state.position_type
            entry_input.value = state.entry_amount
            for target_input, value in zip(target_inputs, state.targets):
                target_input.value = value

            trending_section.set_visibility(False)
            calculator_section.set_visibility(True)
            render_results()

        # === HANDLERS ===
        def on_inputs_changed():
            if state.instrument is None:
                return
            render_results()
            sync_url()

        def on_position(value):
            state.set_position_type(value)
            on_inputs_changed()

        def on_leverage(value):
            state.set_leverage(value)
            leverage_value_label.set_text(format_leverage(state.leverage))
            on_inputs_changed()

        def on_entry(value):
            state.set_entry_amount(value)
            on_inputs_changed()

        def on_target(index, value):
            state.set_target(index, value)
            on_inputs_changed()

        def clear_search():
            search_input.value = ''
            search.clear()
            rendered['search'] = search.revision
            search_container.clear()
            show_message('')

        async def select_pair(instrument):
            clear_search()
            session.select(instrument)
            show_calculator()
            sync_url()

            error = await monitor.start(instrument)
            if error:
                show_message(error, 'error')

        def reset():
            session.reset()
            clear_search()
            calculator_section.set_visibility(False)
            trending_section.set_visibility(True)
            sync_url()

        async def restore_from_link():
            restored = await restore_state(client, link_params)
            if restored is None:
                session.open()
                return
            session.restore(restored)
            show_calculator()
            await monitor.start(restored.instrument, surface_errors=False)

        # === TIMERS ===
        def ui_tick():
            search_spinner.set_visibility(search.loading)
            if search.revision != rendered['search']:
                rendered['search'] = search.revision
                render_search()
            if trending.revision != rendered['trending']:
                rendered['trending'] = trending.revision
                render_trending()
            if monitor.revision != rendered['price']:
                rendered['price'] = monitor.revision
                render_price()
                if state.instrument is not None:
                    render_results()

        def countdown_tick():
            if not trending.running:
                return
            countdown_bar.set_value(trending.countdown.tick() / 100.0)

        ui.timer(0.2, ui_tick)
        ui.timer(TRENDING_TICK_SECONDS, countdown_tick)

        if link_params.get('pair'):
            ui.timer(0.1, restore_from_link, once=True)
        else:
            session.open()
