"""The tally command: timer, log, edit, delete, report and config commands."""