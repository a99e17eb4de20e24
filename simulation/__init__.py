"""simulation — NPC schedules, weapon-deal meetings and order fulfillment.

Every service is an explicitly constructed object; ``WorldSim`` builds
them, wires the clock subscriptions and ticks them in order.

Submodules
----------
routine      determine_state, ScheduleMachine — time-of-day state machine
meetings     MeetingScheduler — meeting windows, reconciliation, flee
dormancy     DormancyRegistry — day-change catch-up for inactive agents
orders       OrderGenerator, OrderBook — random orders, negotiation ledger
matcher      matches, slot_mismatches — exact build vs order comparison
delivery     DeliveryVerifier, BuildLedger — settlement at the meeting
messaging    Messenger — phone text threads
economy      Wallet operations (add / subtract / can_afford)
threats      report_gunshot — alert agents in hearing range
world_sim    WorldSim — wiring + per-frame tick
"""
