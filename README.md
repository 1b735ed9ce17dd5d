# tally

A command-line time tracker. Start a timer for a project, pause and resume
it, stop it, and look back at what you spent your time on. Everything is
kept in a SQLite database at `~/.tally/tally.db`, created on first use.

## Installation

```
pip install .
```

This installs the `tally` command. It needs Python 3.10 or later and no
other libraries.

## Tracking time

```
tally start @work                                  # start a timer for project "work"
tally start @work "Fixing bugs" +backend +urgent   # with a title and tags
tally status                                       # show the running or paused timer
tally pause                                        # pause now
tally pause -f 09:00                               # record a pause from 09:00 until now
tally pause -f 09:00 -t 10:30                      # record a past pause
tally resume                                       # resume, or reopen the last stopped entry
tally stop                                         # stop the timer
```

`start` takes exactly one `@project`; `+name` arguments are tags and all
other words are joined into the title. Only one timer runs at a time: if one
is already running, `start` shows it instead. Projects and tags are created
the first time you use them.

Times given to `pause -f/--from` and `-t/--to` may be `HH:MM`, `HH:MM:SS`
(both taken as today) or `YYYY-MM-DD HH:MM:SS`. A recorded pause may not
begin before the entry started, nor end before it begins; it does not change
whether the timer is running.

When no timer is active, `resume` shows the last entry if it is stopped and
asks for confirmation; reopening it records the gap between the stop and now
as a pause.

## Looking back

```
tally log                          # last 10 entries
tally log --limit 20               # last 20 entries (also -n)
tally log @work +backend           # filter by project and tag
tally log --from 2024-01-01 --to 2024-01-31
```

Dates are `YYYY-MM-DD`; the `--to` day is included in full. In the listing,
`*` marks a running entry and `~` a paused one. Durations leave out paused
time.

## Reports

```
tally report                       # choose a period from a numbered menu
tally report today
tally report week @work
tally report month +backend --format json
```

Periods: `today`, `yesterday`, `week`, `lastWeek`, `month`, `lastMonth`,
`year`, `lastYear`. Weeks start on Monday. A report covers the entries
started within the period and totals them by project and by tag.

Output formats are `table`, `json` and `csv`; without `--format` the
`output.format` setting is used. In JSON, durations are whole nanoseconds
and times are ISO 8601 with the local offset. In CSV, the duration column is
in minutes with one decimal place.

## Editing and deleting

```
tally edit                         # edit the most recent entry in $EDITOR
tally edit 01ABC123DEF456GHI789JKL0
tally delete                       # delete the most recent entry, after confirming
tally delete --force               # or -f: no confirmation
```

`edit` writes the entry to a temporary JSON file and opens it in `$EDITOR`
(`vim` when unset). Times use the form `YYYY-MM-DD HH:MM:SS`; an end time may
not come before the start time. Pauses without an `id` are added (with reason
`Manual` when none is given), pauses removed from the list are deleted, and
the tag list replaces the entry's tags.

## Configuration

```
tally config list
tally config get output.format
tally config set output.format json
```

| Key             | Default    | Meaning                               |
|-----------------|------------|---------------------------------------|
| `output.format` | `table`    | Report output: `table`, `json`, `csv` |
| `data.location` | `~/.tally` | Data directory path                   |

Unknown keys are refused, and `output.format` accepts only the three values
above.

## Version

```
tally version
```

## Using it from Python

The command-line tool is built on a small library:

- `tally.database.open_database(data_dir=None)` opens (and creates) the
  database and returns a `Database`, usable as a context manager.
- `tally.entries` creates, stops, pauses, resumes, lists and deletes entries
  (`create_entry`, `stop_entry`, `list_entries` with `ListEntriesOptions`, …).
- `tally.reports.generate_report(db, ReportOptions(period=...))` returns a
  `ReportSummary`; `period_date_range` gives a period's bounds.
- `tally.config` reads and writes settings with their defaults.
- `tally.formatting` holds the duration, tag, time and table formatting.

## Limitations

- The database always lives in `~/.tally` when run from the command line.
  The `data.location` setting is stored and shown but does not move it.
- There is no export other than the report formats, and no import.