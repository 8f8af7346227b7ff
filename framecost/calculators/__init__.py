"""
Frame cost engine: rate sheet, presets and the estimator.

Everything here is deterministic arithmetic over a parameter dict; AI
extraction lives in framecost.extraction and only ever feeds parameters in.
Given FabricationParameters (from a form, a preset, or merged AI extraction),
produce a per-frame FabricationBreakdown and scale it to a batch.
"""
