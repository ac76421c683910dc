# deckbuddy

`deckbuddy` runs on the gaming PC and supplies the building blocks a host-side
helper needs while a handheld client streams games from it. It uses only the
Python standard library.

## What it contains

- `deckbuddy.enums`: `SteamUiMode`, `AppState`, `PcState` and `StreamState`.
- `deckbuddy.appmetadata`: `App` and `AppMetadata`, which give the application
  names (`MoonDeckBuddy`, `MoonDeckStream`) and the log, settings and autostart
  paths; `config_dir()` honours `XDG_CONFIG_HOME`.
- `deckbuddy.clientids`: `ClientIds`, a set of paired client ids kept as a JSON
  array in a file. `load()` and `save()` raise `ClientIdsError` when the file
  cannot be read, parsed or written.
- `deckbuddy.pairing`: `PairingManager`. A client starts pairing with its id
  and the base64 of `id + pin`; `finish_pairing(pin)` records the id and saves
  the file when the PIN matches. Optional callbacks are called when user input
  is needed and when pairing is aborted.
- `deckbuddy.httpserver`: `HttpServer`, a threaded HTTPS server. Handlers are
  registered with `route(path, method, handler)`, where `<arg>` in the path
  matches one segment and is passed to the handler; `after_request` handlers
  can replace responses. `get_authorization_id` reads the client id from a
  `Basic` authorization header, and `is_authorized` checks it against the
  paired ids.
- `deckbuddy.jsonvalues`: typed extraction of values from decoded JSON objects.
- `deckbuddy.appsettings`: `AppSettings`, read from `settings.json`.
- `deckbuddy.heartbeat`: `Heartbeat`, a cross-process heartbeat. One process
  beats every 250 ms; another listens and counts it as alive while the last
  beat is at most 2 seconds old. A listener can ask the beater to terminate.
- `deckbuddy.streamstate`: `StreamStateHandler`, which turns the heartbeat of
  the stream helper into a `StreamState` and can end the stream.
- `deckbuddy.envshare`: `EnvSharedMemory`, which stores environment variables
  whose names start with given prefixes (case-insensitive) with a version,
  size and checksum header, so another process can read them back.
- `deckbuddy.sunshineapps`: `SunshineApps`, which loads the app names from
  Sunshine's `apps.json` (by default from the Sunshine config directory).
- `deckbuddy.singleinstance`: `SingleInstanceGuard`, a system-wide lock that
  the operating system frees if its holder dies.
- `deckbuddy.logsettings`: log formatting, log files that are moved to
  `<name>.old` once larger than 2 MiB, and logging rules of the form
  `category[.level]=true|false`.
- `deckbuddy.signals`: `install_signal_handler(callback)` for SIGINT and SIGTERM.

The heartbeat, the shared environment and the instance lock are small files in
the system's temporary directory.

## Installation

```
pip install .
```

## The stream helper

Start this command while a stream session is active:

```
deckbuddy-stream
```

It exits with status 1 if another instance is already running. Otherwise it
captures the `APOLLO*` and `SUNSHINE*` environment variables, starts
heartbeating and runs until it receives SIGINT or SIGTERM or until a listener
asks it to terminate; on shutdown it removes the environment data it stored.
It logs to stdout and to `moondeckstream.log` (in `/tmp` on Linux, next to the
executable on Windows). `deckbuddy-stream --version` prints the version.

## Library use

```python
from deckbuddy.clientids import ClientIds
from deckbuddy.pairing import PairingManager

ids = ClientIds("clients.json")
ids.load()

manager = PairingManager(ids)
manager.start_pairing("client-1", "Y2xpZW50LTExMjM0")  # base64 of "client-1" + "1234"
manager.finish_pairing(1234)
assert manager.is_paired("client-1")
```

## Settings

`AppSettings(AppMetadata(App.BUDDY))` reads `settings.json` from the settings
directory (`<config dir>/moondeckbuddy` on Linux, next to the executable on
Windows). The file holds `port` (default 59999), `logging_rules`,
`sunshine_apps_filepath`, `prefer_hibernation` (default false), `ssl_protocol`
(one of `SecureProtocols`, `TlsV1_2`, `TlsV1_2OrLater`, `TlsV1_3`,
`TlsV1_3OrLater`), `close_steam_before_sleep` (default true),
`mac_address_override` and `steam_exec_override`. When the file is missing or
any entry is missing or invalid, it is rewritten with the valid values read so
far and defaults for the rest. A port outside 0 to 65535 or undecodable JSON
raises `SettingsError`.

## What it does not do

There is no command for the main host helper: the package defines no HTTP
routes of its own, and it does not launch or close Steam or its games, change
the PC's power state, manage autostart entries or show a tray icon or a PIN
entry dialog. Those parts are left to the application built on top of it.

## Running the tests

```
pip install .[test]
pytest
```