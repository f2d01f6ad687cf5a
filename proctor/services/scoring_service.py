"""
Scoring Service
One point per correctly answered question
"""


class ScoringService:
    """Service for scoring answers"""

    @staticmethod
    def is_correct(question, selected_index):
        """Unanswered questions are never correct"""
        if selected_index is None:
            return False
        return selected_index == question.correct_option_index

    @staticmethod
    def score(questions, answers):
        """
        Count questions whose captured answer equals the correct option.
        No partial credit.

        Args:
            questions: objects with `id` and `correct_option_index`
            answers: mapping of question id -> selected option index
        """
        return sum(
            1 for question in questions
            if ScoringService.is_correct(question, answers.get(question.id))
        )
