"""
IdleCity Simulator - Interactive REPL
======================================
Play a session from the console. Time only moves when you say so
(``wait <seconds>``), unless ``run`` starts the live ticker.
"""

import cmd
from typing import Optional

from idle_sim.engine import GameSession
from idle_sim.format import (
    fmt_cost, fmt_number, fmt_unlock, print_achievements, print_buildings,
    print_status,
)
from idle_sim.io import load_snapshot, save_snapshot
from idle_sim.models import MalformedDataError, UnknownEntryError
from idle_sim.scheduler import TickScheduler


class IdleCityREPL(cmd.Cmd):
    intro = (
        "\n"
        "================================================\n"
        "  IdleCity Simulator - Interactive Mode\n"
        "================================================\n"
        "Type 'help' for commands. Type 'catalog' for buildings and upgrades.\n"
    )
    prompt = "city> "

    def __init__(self, session: Optional[GameSession] = None):
        super().__init__()
        self.session = session or GameSession()
        self.session.subscribe(self._announce)
        self.scheduler: Optional[TickScheduler] = None

    def _announce(self, event):
        print(f"[achievement] {fmt_unlock(event)}")

    def _amount(self, arg) -> Optional[float]:
        if not arg.strip():
            return 1.0
        try:
            return float(arg)
        except ValueError:
            print(f"Not a number: {arg}")
            return None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def do_collect(self, arg):
        """Collect coins by hand: collect [amount]"""
        amount = self._amount(arg)
        if amount is None:
            return
        try:
            self.session.collect_coins(amount)
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(f"Coins: {fmt_number(self.session.ledger()['coins'])}")

    def do_attract(self, arg):
        """Attract citizens by hand: attract [amount]"""
        amount = self._amount(arg)
        if amount is None:
            return
        try:
            self.session.attract_population(amount)
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(f"Population: {fmt_number(self.session.ledger()['population'])}")

    def do_buy(self, arg):
        """Buy a building or upgrade: buy <key> [count]"""
        parts = arg.split()
        if not parts:
            print("Usage: buy <key> [count]")
            return
        key = parts[0]
        count = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 1

        bought = 0
        for _ in range(count):
            try:
                cost = self.session.cost_of(key)
            except UnknownEntryError:
                print(f"Unknown entry: {key}. Type 'catalog' for list.")
                return
            result = self.session.purchase(key)
            if not result.ok:
                print(f"Cannot buy {key}: {result.value}")
                break
            bought += 1
            print(f"Bought {key} for {fmt_cost(cost)}")
        if bought:
            print(f"{key}: {self.session.owned(key)} owned")

    def do_wait(self, arg):
        """Let simulated time pass: wait <seconds>"""
        try:
            seconds = float(arg)
        except ValueError:
            print("Usage: wait <seconds>")
            return
        try:
            self.session.tick(seconds)
        except ValueError as e:
            print(f"Error: {e}")
            return
        ledger = self.session.ledger()
        print(f"+{fmt_number(seconds)}s  coins={fmt_number(ledger['coins'])} "
              f"pop={fmt_number(ledger['population'])} "
              f"happy={ledger['happiness']:.1f}")

    do_tick = do_wait

    # ------------------------------------------------------------------
    # Live ticking
    # ------------------------------------------------------------------

    def do_run(self, arg):
        """Start the real-time ticker"""
        if self.scheduler is None:
            self.scheduler = TickScheduler(self.session)
        self.scheduler.start()
        print(f"Ticker running every {self.scheduler.interval}s")

    def do_pause(self, arg):
        """Stop the real-time ticker"""
        if self.scheduler is None or not self.scheduler.is_running:
            print("Ticker is not running")
            return
        self.scheduler.stop()
        print("Ticker stopped")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def do_status(self, arg):
        """Show resources, rates, owned entries and statistics"""
        print_status(self.session)

    def do_catalog(self, arg):
        """Show buildings and upgrades with next cost"""
        print_buildings(self.session)

    def do_achievements(self, arg):
        """Show all achievements with progress"""
        print_achievements(self.session)

    def do_rates(self, arg):
        """Show generation per second"""
        for resource, rate in self.session.rates().items():
            print(f"  {resource:<12} {fmt_number(rate)}/s")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def do_save(self, arg):
        """Save the session: save <filepath>"""
        path = arg.strip() or self.session.config.save_path
        try:
            save_snapshot(self.session.save(), path)
        except OSError as e:
            print(f"Error: {e}")
            return
        print(f"[save] {path}")

    def do_load(self, arg):
        """Load a saved session: load <filepath>"""
        path = arg.strip() or self.session.config.save_path
        try:
            credited = self.session.load(load_snapshot(path))
        except OSError as e:
            print(f"Error: {e}")
            return
        except MalformedDataError as e:
            print(f"[load] rejected {path}: {e}")
            return
        print(f"[load] {path}")
        if credited:
            print(f"[load] offline progress: {fmt_number(credited)}s")

    def do_reset(self, arg):
        """Start over from an empty city"""
        self.session.reset()
        print("Session reset")

    def do_quit(self, arg):
        """Exit the REPL"""
        if self.scheduler is not None:
            self.scheduler.stop()
        print("Bye!")
        return True

    do_exit = do_quit
    do_q = do_quit

    def emptyline(self):
        pass
