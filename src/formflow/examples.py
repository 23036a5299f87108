"""
Example form builder.

Builds a small team-survey form that exercises every moving part of the
core: show and skip rules, a jump, piping in titles and a calculator.
"""
from formflow.model import (
    FormDefinition,
    LogicCondition,
    LogicRule,
    Option,
    Question,
    QuestionProperties,
)
from formflow.operators import ConditionLogic, LogicOperator, QuestionType, RuleAction


def build_example_team_survey(seat_price: int = 12) -> FormDefinition:
    questions = [
        Question(id="welcome", type=QuestionType.WELCOME, title="Team tooling survey"),
        Question(id="name", type=QuestionType.SHORT_TEXT, title="What is your name?", required=True),
        Question(
            id="role",
            type=QuestionType.MULTIPLE_CHOICE,
            title="Thanks {{name}}, what is your role?",
            required=True,
            properties=QuestionProperties(options=(
                Option(id="o1", label="Engineer", value="engineer"),
                Option(id="o2", label="Manager", value="manager"),
                Option(id="o3", label="Other", value="other"),
            )),
        ),
        # Only managers are asked about team size
        Question(
            id="team_size",
            type=QuestionType.NUMBER,
            title="How many people are on your team?",
            properties=QuestionProperties(min=1, max=500),
            logic=LogicRule(
                id="r_team_size",
                conditions=(LogicCondition(
                    id="c1", question_id="role", operator=LogicOperator.EQUALS, value="manager",
                ),),
                condition_logic=ConditionLogic.AND,
                action=RuleAction.SHOW,
            ),
        ),
        Question(
            id="tools",
            type=QuestionType.CHECKBOX,
            title="Which tools does your {{role}} work involve?",
            properties=QuestionProperties(options=(
                Option(id="t1", label="Issue tracker", value="tracker"),
                Option(id="t2", label="Chat", value="chat"),
                Option(id="t3", label="None of these", value="none"),
            )),
        ),
        # Respondents who use none of the tools skip straight to the closing screen
        Question(
            id="satisfaction",
            type=QuestionType.RATING,
            title="How happy are you with {{tools}}?",
            properties=QuestionProperties(max=5),
            logic=LogicRule(
                id="r_satisfaction",
                conditions=(LogicCondition(
                    id="c2", question_id="tools", operator=LogicOperator.CONTAINS, value="none",
                ),),
                condition_logic=ConditionLogic.AND,
                action=RuleAction.SKIP,
                jump_to_question_id="thanks",
            ),
        ),
        Question(
            id="monthly_cost",
            type=QuestionType.CALCULATOR,
            title="Estimated monthly cost",
            properties=QuestionProperties(
                formula=f"{{{{team_size}}}} * {seat_price}",
                decimal_places=2,
                prefix="$",
            ),
            logic=LogicRule(
                id="r_cost",
                conditions=(LogicCondition(
                    id="c3", question_id="team_size", operator=LogicOperator.IS_NOT_EMPTY,
                ),),
                action=RuleAction.SHOW,
            ),
        ),
        Question(id="thanks", type=QuestionType.THANK_YOU, title="Thanks {{name}}!"),
    ]
    return FormDefinition(id="team-survey", title="Team tooling survey", questions=tuple(questions))
