from oh_my_skills.tui.renderers import SkillsConsoleUI

__all__ = ["SkillsConsoleUI"]
