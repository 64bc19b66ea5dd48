"""
Mousetrap - honeypot channel guard for Discord

Server administrators pick one text channel as the mousetrap. Nobody has a
reason to write there, so anyone who does is treated as a spam bot.

Core Components:

- **Guard configuration**: per-guild trap and audit log channels, persisted in
  one hand-editable JSON file (settings/guard_config_store.py)
- **Evaluation**: every message is classified as Ignore, Warn or Punish
  (moderation/guard_evaluator.py, moderation/immunity_policy.py)
- **Actions**: audit log, DM and ban for ordinary members; delete and DM for
  moderators (moderation/action_executor.py)
- **Commands**: /mousetrap and /mousetrap-log slash command groups

Usage:
    from mousetrap.main import main
    main()
"""
