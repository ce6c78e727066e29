"""
nftlife.lifecycle: the NFT lifecycle state machine.

Components (leaf-first), each a small frozen dataclass or a set of pure functions
over ``nftlife.core.schema.NftState``:

- RarityOracle (rarity.py): initial rarity from the mint hour (0 or 12 -> legendary).
- CooldownPolicy (cooldown.py): rarity multiplier x base unit between updates.
- AttributeUpdater (updater.py): update_metadata, update_level, update_rarity,
  update_uri, level_up.
- EvolutionEngine (evolution.py): evolve (threshold + seeded draw) and
  evolve_rarity (time lock + points gate).
- FusionEngine (fusion.py): two parents -> one derived record.
- AchievementTracker (achievements.py): derived points, tiers, score gates.

Supporting modules:
- randomness.py: RandomSource protocol, SeededRandom, DigestRandom.
- config.py: LifecycleSettings (env > TOML > defaults) and component factories.

Import DAG discipline
- Depends on nftlife.core only. No IO, no clock, no store: ``now`` and the random
  source are arguments, records are values in and values out.
"""
