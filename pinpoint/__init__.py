"""Cloud speech-to-text and text-to-speech backends, signals, secrets, tokenizer and downloader."""

__version__ = "0.1.0"