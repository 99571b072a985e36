"""ListenLab: intensive listening and cloze practice on uploaded audio."""
