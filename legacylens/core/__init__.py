# legacylens core - scanning, page extraction, Java metadata, correlation and reports
