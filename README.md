# pinpoint

Building blocks for applications that listen and talk back: speech-to-text
(STT) and text-to-speech (TTS) backends for cloud speech services, a small
signal/slot mechanism to wire them together, a secrets store for service keys,
a phoneme tokenizer and a sequential file downloader.

Install with `pip install .` (add `.[test]` for pytest).

## Modules

| Module | Contents |
| --- | --- |
| `pinpoint.signals` | `Signal`: `connect`, `disconnect`, `emit`. |
| `pinpoint.stt_backend` | `STTBackend`, the base class for transcription backends, and `STTWorker`, which drives one. |
| `pinpoint.azure_stt` | `AzureSTTBackend` (Azure Speech REST API), `build_wav`, `float_to_pcm16`. |
| `pinpoint.assemblyai` | `AssemblyAISTTBackend` (AssemblyAI real-time WebSocket API). |
| `pinpoint.tts_engine` | `TTSEngine`, the base class for synthesis engines, `TtsWorker`, `AudioFormat`, `SampleFormat`. |
| `pinpoint.azure_tts` | `AzureTTSEngine` (Azure TTS), `build_ssml`, `xml_escape`, `pcm16_to_float`. |
| `pinpoint.tokenizer` | `PhonemeTokenizer`, `load_vocab`, `TokenizerError`. |
| `pinpoint.downloader` | `ModelDownloader`, `DownloadItem`. |
| `pinpoint.secret_store` | `SecretsManager`, `to_env_var_name`. |

## Signals

Backends, engines, workers and the downloader report through `Signal`
attributes. `emit(*args)` calls every connected callable in connection order;
a callable connected twice is called twice, and `disconnect` of a callable that
is not connected raises `ValueError`.

```python
from pinpoint.signals import Signal

text_ready = Signal()
text_ready.connect(print)
text_ready.emit("hello world")
```

## Speech to text

All STT backends take 16 kHz, mono float samples in the range -1.0 to 1.0;
values outside it are clipped before conversion to 16-bit PCM. Results arrive
on `transcription_ready(text)` and `transcription_failed(message)`.

`STTWorker` wraps a backend: `load_model(path)` emits `model_ready()` and then
`backend_label_ready(label)` on success, or `model_failed(message)`; it relays
the backend's transcription signals and forwards `transcribe` and
`stop_streaming`.

```python
from pinpoint.azure_stt import AzureSTTBackend
from pinpoint.stt_backend import STTWorker

worker = STTWorker(AzureSTTBackend(api_key="placeholder"))
worker.transcription_ready.connect(print)
worker.load_model("")          # no model file is needed
worker.transcribe(samples)     # blocking HTTP POST
```

* `AzureSTTBackend` posts each chunk as a WAV file and emits `DisplayText`
  when `RecognitionStatus` is `Success`. A chunk given while a request is in
  flight is dropped; `stop_streaming()` abandons the pending request and its
  result is discarded. An HTTP error status is reported through
  `transcription_failed`. Its label is `"Cloud"` and it wants silence gating.
* `AssemblyAISTTBackend` opens its WebSocket on the first `transcribe()` after
  `load_model()` (that first chunk is not sent), sends audio in messages of at
  most 15 360 samples and reads replies on a background thread. It emits the
  punctuated utterance of a turn as soon as it appears, or the raw transcript
  when the turn ends without one, and never emits a turn twice.
  `stop_streaming()` sends a terminate request and force-closes after five
  seconds (`abort_timeout`) if no reply arrives. A custom `connector(url,
  headers)` can be supplied. Its label is `"Cloud"` and it does not want silence
  gating.

## Text to speech

`TTSEngine.synthesise(text)` emits `synthesis_started()`, then
`audio_ready(pcm_bytes, audio_format)`, then `synthesis_finished()`. The
`speed` attribute (1.0 is normal) applies to the next call. `TtsWorker`
relays those signals; its `load_model` emits `backend_changed(gpu_backend)`
before `model_ready()`, or `model_failed(message)`.

`AzureTTSEngine` makes one POST per call and delivers 24 kHz mono float32 PCM
(`AudioFormat(24000, 1, SampleFormat.FLOAT)`). Empty or blank text is ignored;
`stop()` abandons the request in flight, after which only
`synthesis_finished()` follows.

```python
from pinpoint.azure_stt import build_wav
from pinpoint.azure_tts import build_ssml, xml_escape

wav = build_wav([0.0, 0.25, -0.25])     # 44-byte RIFF header + 16-bit samples
ssml = build_ssml("Fish & chips", 1.1)  # prosody rate '+10%', text escaped
print(xml_escape("<a & b>"))            # &lt;a &amp; b&gt;
```

## Phoneme tokenization

`load_vocab(path)` reads a vocabulary that is either a flat `{"symbol": id}`
object or the `{"model": {"vocab": {...}}}` layout, raising `TokenizerError`
when the file is missing, malformed or empty. `PhonemeTokenizer(phonemizer)`
takes a callable mapping text to an IPA string; `initialise(path)` loads the
vocabulary and raises `TokenizerError` if no phonemizer was given.
`tokenise(text)` phonemises and converts; `phonemes_to_ids(phonemes)` prefers
two-character symbols over single ones, skips unknown characters and stops at
512 IDs.

## Downloads

`ModelDownloader.download(items)` fetches a list of `DownloadItem(url,
local_path)` in order, writing each to `<path>.part` and renaming it on
success. It emits `progress(index, count, received, total)` (total is -1 when
unknown), `file_complete(path)`, `finished()`, or `failed(message)` at the
first error. `abort()`, called from another thread, stops the current file and
removes its partial file.

## Secrets

`SecretsManager` looks up a key such as `azureSttApiKey` in the environment
variable `AZURE_STT_API_KEY` and falls back to `secrets/<key>` in a JSON
settings file (by default `settings.json` in the per-user config directory for
`PinPoint`). `initialize_defaults()` stores `AZURE_TTS_API_KEY` and
`AZURE_STT_API_KEY` from the environment, and any `defaults` given to the
constructor, where no value is stored yet.

```python
from pinpoint.secret_store import SecretsManager, to_env_var_name

print(to_env_var_name("assemblyaiApiKey"))   # ASSEMBLYAI_API_KEY
secrets = SecretsManager()
secrets.initialize_defaults()
key = secrets.read("azureSttApiKey")
```

## What this package does not do

There is no audio capture or playback, no silence detection or resampling, no
local speech recognition model and no local neural synthesis engine; the
tokenizer ships without a phonemiser, so one must be supplied. There is no
command-line program or user interface: the package is a library.