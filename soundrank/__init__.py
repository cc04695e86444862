"""
soundrank - Sound event classification with pretrained models

Decodes an audio clip, frames it into the tensor layout a pretrained
sound-event model (e.g. YAMNet exported to ONNX) expects, runs the model
and reports the top-K labels.
"""

__version__ = "1.0.0"
