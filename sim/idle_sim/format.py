"""
IdleCity Simulator - Output Formatting
=======================================
Pretty-printing for sessions and playthrough results.
"""

from typing import Dict

from idle_sim.models import PlaythroughResult, UnlockEvent


_SUFFIXES = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def fmt_number(val: float) -> str:
    for threshold, suffix in _SUFFIXES:
        if abs(val) >= threshold:
            return f"{val / threshold:.2f}{suffix}"
    if float(val).is_integer():
        return f"{val:.0f}"
    return f"{val:.1f}"


def fmt_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def fmt_duration(seconds: float) -> str:
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return (f"{hours} hour{'s' if hours != 1 else ''} "
            f"{minutes} minute{'s' if minutes != 1 else ''}")


def fmt_cost(cost: Dict[str, float]) -> str:
    if not cost:
        return "free"
    return ", ".join(f"{fmt_number(v)} {r}" for r, v in cost.items())


def fmt_reward(reward: Dict[str, float]) -> str:
    if not reward:
        return "-"
    return ", ".join(f"+{fmt_number(v)} {r}" for r, v in reward.items())


def fmt_unlock(event: UnlockEvent) -> str:
    return f"{event.name} ({fmt_reward(event.reward)})"


# ---------------------------------------------------------------------------
# Session status
# ---------------------------------------------------------------------------

def print_status(session):
    ledger = session.ledger()
    rates = session.rates()
    stats = session.statistics()

    print()
    print("=" * 60)
    print("  IDLECITY STATUS")
    print("=" * 60)

    print()
    print("--- RESOURCES ---")
    for resource, amount in ledger.items():
        print(f" {resource:<12} {fmt_number(amount):>12}   {fmt_number(rates[resource]):>8}/s")

    print_buildings(session)

    print()
    print("--- STATISTICS ---")
    print(f" Clicks:            {stats.total_clicks}")
    print(f" Coins earned:      {fmt_number(stats.total_coins_earned)}")
    print(f" Buildings bought:  {stats.buildings_purchased}")
    print(f" Upgrades bought:   {stats.upgrades_purchased}")
    print(f" Play time:         {fmt_duration(stats.play_seconds)}")

    summary = session.achievement_summary()
    print()
    print(f"--- ACHIEVEMENTS ({summary['unlocked']}/{summary['total']}, "
          f"{summary['percentage']}%) ---")
    for achievement_id in session.unlocked():
        d = session.achievements.get(achievement_id)
        print(f" [x] {d.name:<24} {d.description}")


def print_buildings(session):
    print()
    print("--- CATALOG ---")
    print(f" {'Key':<24} {'Owned':>6} {'Next cost':>14}  Status")
    print(f" {'---':<24} {'-----':>6} {'---------':>14}  ------")
    for entry in session.catalog:
        owned = session.owned(entry.key)
        if session.is_maxed(entry.key):
            status, cost = "max", "-"
        else:
            cost = fmt_cost(session.cost_of(entry.key))
            if not session.is_unlocked(entry.key):
                status = "locked"
            elif session.can_afford(entry.key):
                status = "buy"
            else:
                status = ""
        print(f" {entry.key:<24} {owned:>6} {cost:>14}  {status}")


def print_achievements(session):
    summary = session.achievement_summary()
    progress = session.achievement_progress()
    unlocked = set(session.unlocked())

    print()
    print(f"--- ACHIEVEMENTS ({summary['unlocked']}/{summary['total']}) ---")
    for d in session.achievements.definitions:
        mark = "x" if d.id in unlocked else " "
        pct = "" if d.id in unlocked else f"{progress.get(d.id, 0.0) * 100:5.1f}%"
        print(f" [{mark}] {d.name:<22} {d.category:<10} {pct:>6}  {fmt_reward(d.reward)}")


# ---------------------------------------------------------------------------
# Playthrough report
# ---------------------------------------------------------------------------

def print_full_report(result: PlaythroughResult):
    print()
    print("=" * 70)
    print(f"  IDLECITY PLAYTHROUGH")
    print(f"  Script: {result.name}")
    print(f"  Duration: {fmt_time(result.duration)}")
    print("=" * 70)

    print_timeline(result)
    print_unlocks(result)
    print_samples(result)
    print_summary(result)


def print_timeline(result: PlaythroughResult):
    print()
    print("--- PURCHASE TIMELINE ---")
    print(f" {'Time':>8}  {'Entry':<24} {'Cost':>16}")
    print(f" {'----':>8}  {'-----':<24} {'----':>16}")
    for t, key, cost in result.purchase_log:
        print(f" {fmt_time(t):>8}  {key:<24} {fmt_cost(cost):>16}")

    if result.rejected:
        print()
        print("--- REJECTED ACTIONS ---")
        for t, key, reason in result.rejected:
            print(f" {fmt_time(t):>8}  {key:<24} {reason}")


def print_unlocks(result: PlaythroughResult):
    if not result.unlock_log:
        return
    print()
    print("--- ACHIEVEMENTS ---")
    for event in result.unlock_log:
        print(f" {fmt_time(event.play_seconds):>8}  {fmt_unlock(event)}")


def print_samples(result: PlaythroughResult):
    print()
    print("--- ECONOMY SNAPSHOTS ---")
    print(f" {'Time':>8} {'Coins':>10} {'Pop':>10} {'Happy':>7} {'C/s':>8} {'P/s':>8}")
    for s in result.samples:
        print(f" {fmt_time(s.time):>8} {fmt_number(s.coins):>10} {fmt_number(s.population):>10} "
              f"{s.happiness:>7.1f} {fmt_number(s.coins_rate):>8} {fmt_number(s.population_rate):>8}")


def print_summary(result: PlaythroughResult):
    print()
    print("--- SUMMARY ---")
    print(f" Purchases:          {len(result.purchase_log)}")
    print(f" Rejected actions:   {len(result.rejected)}")
    print(f" Achievements:       {len(result.unlock_log)}")
    print(f" Peak coin rate:     {fmt_number(result.peak_coins_rate)}/s")
    print(f" Peak pop rate:      {fmt_number(result.peak_population_rate)}/s")
    if result.final_snapshot:
        ledger = result.final_snapshot.ledger
        print(f" Final coins:        {fmt_number(ledger['coins'])}")
        print(f" Final population:   {fmt_number(ledger['population'])}")
