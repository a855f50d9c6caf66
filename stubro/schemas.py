"""
Response schemas passed to Gemini with ``response_mime_type="application/json"``.

Schemas use the OpenAPI subset the Gemini API accepts. Every ``required`` list
names fields the matching record in ``stubro.records`` cannot do without.
"""

STRING = {"type": "STRING"}
NUMBER = {"type": "NUMBER"}
STRING_LIST = {"type": "ARRAY", "items": STRING}


def obj(properties, required=None):
    schema = {"type": "OBJECT", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


def array_of(items):
    return {"type": "ARRAY", "items": items}


def enum(*values):
    return {"type": "STRING", "enum": list(values)}


POINT = obj({"x": NUMBER, "y": NUMBER}, ["x", "y"])

QUIZ = obj({
    "questions": array_of(obj({
        "question": STRING,
        "type": enum("mcq", "written"),
        "options": STRING_LIST,
        "correctAnswer": STRING,
        "explanation": STRING,
    }, ["question", "type", "explanation"])),
}, ["questions"])

FLASHCARDS = array_of(obj({
    "term": STRING,
    "definition": STRING,
    "tip": STRING,
}, ["term", "definition"]))

SMART_SUMMARY = obj({
    "title": STRING,
    "coreConcepts": array_of(obj({"term": STRING, "definition": STRING}, ["term", "definition"])),
    "visualAnalogy": obj({"analogy": STRING, "explanation": STRING}, ["analogy", "explanation"]),
    "examSpotlight": STRING_LIST,
    "stuBroTip": STRING,
}, ["title", "coreConcepts", "visualAnalogy", "examSpotlight", "stuBroTip"])

# Three levels deep; the API does not accept recursive references.
_LEAF_NODE = obj({"term": STRING, "explanation": STRING})
_BRANCH_NODE = obj({"term": STRING, "explanation": STRING, "children": array_of(_LEAF_NODE)})
MIND_MAP = obj({
    "term": STRING,
    "explanation": STRING,
    "children": array_of(_BRANCH_NODE),
}, ["term", "explanation"])

WRITTEN_FEEDBACK = obj({
    "whatIsCorrect": STRING,
    "whatIsMissing": STRING,
    "whatIsIncorrect": STRING,
    "marksAwarded": NUMBER,
    "totalMarks": NUMBER,
}, ["whatIsCorrect", "whatIsMissing", "whatIsIncorrect", "marksAwarded", "totalMarks"])

QUESTION_PAPER = obj({
    "title": STRING,
    "totalMarks": NUMBER,
    "instructions": STRING,
    "questions": array_of(obj({
        "question": STRING,
        "questionType": enum("mcq", "short_answer", "long_answer"),
        "options": STRING_LIST,
        "answer": STRING,
        "marks": NUMBER,
    }, ["question", "questionType", "answer", "marks"])),
}, ["title", "totalMarks", "instructions", "questions"])

GRADED_PAPER = obj({
    "totalMarksAwarded": NUMBER,
    "overallFeedback": STRING,
    "gradedQuestions": array_of(obj({
        "questionNumber": NUMBER,
        "marksAwarded": NUMBER,
        "studentAnswerTranscription": STRING,
        "feedback": obj({
            "whatWasCorrect": STRING,
            "whatWasIncorrect": STRING,
            "suggestionForImprovement": STRING,
        }, ["whatWasCorrect", "whatWasIncorrect", "suggestionForImprovement"]),
    }, ["questionNumber", "marksAwarded", "studentAnswerTranscription", "feedback"])),
}, ["totalMarksAwarded", "overallFeedback", "gradedQuestions"])

CAREER_INFO = obj({
    "introduction": STRING,
    "careerPaths": array_of(obj({
        "careerName": STRING,
        "description": STRING,
        "subjectsToFocus": STRING_LIST,
        "roadmap": array_of(obj({
            "stage": STRING,
            "focus": STRING,
            "examsToPrepare": STRING_LIST,
        }, ["stage", "focus"])),
        "topColleges": STRING_LIST,
        "potentialGrowth": STRING,
    }, ["careerName", "description", "subjectsToFocus", "roadmap", "potentialGrowth"])),
}, ["introduction", "careerPaths"])

STUDY_PLAN = obj({
    "title": STRING,
    "plan": array_of(obj({
        "day": NUMBER,
        "topic": STRING,
        "goal": STRING,
        "timeSlot": STRING,
    }, ["day", "topic", "goal"])),
}, ["title", "plan"])

VIVA_QUESTIONS = STRING_LIST
DEBATE_TOPICS = STRING_LIST

VIVA_EVALUATION = obj({
    "transcription": STRING,
    "feedback": STRING,
    "marksAwarded": NUMBER,
}, ["transcription", "feedback", "marksAwarded"])

DOUBT_RESPONSE = obj({"transcription": STRING, "response": STRING}, ["transcription", "response"])

DEBATE_REBUTTAL = obj({"transcription": STRING, "rebuttal": STRING}, ["transcription", "rebuttal"])

DEBATE_SCORECARD = obj({
    "overallScore": NUMBER,
    "argumentStrength": NUMBER,
    "rebuttalEffectiveness": NUMBER,
    "clarity": NUMBER,
    "strongestArgument": STRING,
    "improvementSuggestion": STRING,
    "concludingRemarks": STRING,
}, ["overallScore", "argumentStrength", "rebuttalEffectiveness", "clarity",
    "strongestArgument", "improvementSuggestion", "concludingRemarks"])

GAME_LEVEL = obj({
    "title": STRING,
    "theme": STRING,
    "goal": STRING,
    "player_start": POINT,
    "grid": array_of(array_of(obj({"type": enum("floor", "wall", "interaction", "exit")}, ["type"]))),
    "interactions": array_of(obj({
        "id": NUMBER,
        "position": POINT,
        "prompt": STRING,
        "correct_answer": STRING,
        "success_message": STRING,
        "failure_message": STRING,
    }, ["id", "position", "prompt", "correct_answer", "success_message", "failure_message"])),
}, ["title", "theme", "goal", "player_start", "grid", "interactions"])

PERFORMANCE_ANALYSIS = obj({
    "strengthsIdentified": STRING_LIST,
    "weaknessesIdentified": STRING_LIST,
    "aiFeedback": STRING,
}, ["strengthsIdentified", "weaknessesIdentified", "aiFeedback"])

LEARNING_PATH = obj({
    "mainTopic": STRING,
    "weakAreas": STRING_LIST,
    "learningSteps": array_of(obj({
        "step": NUMBER,
        "topic": STRING,
        "goal": STRING,
        "resources": STRING_LIST,
    }, ["step", "topic", "goal", "resources"])),
}, ["mainTopic", "weakAreas", "learningSteps"])

SIMULATION = obj({
    "title": STRING,
    "objective": STRING,
    "visualTheme": enum("chemistry", "physics", "biology"),
    "liquidColor": STRING,
    "secondaryColor": STRING,
    "steps": array_of(obj({
        "instruction": STRING,
        "actionLabel": STRING,
        "resultDescription": STRING,
    }, ["instruction", "actionLabel", "resultDescription"])),
}, ["title", "objective", "visualTheme", "steps", "liquidColor"])

LAB_EXPERIMENT = obj({
    "experimentTitle": STRING,
    "objective": STRING,
    "hypothesis": STRING,
    "materials": STRING_LIST,
    "procedure": STRING_LIST,
    "safetyPrecautions": STRING_LIST,
}, ["experimentTitle", "objective", "hypothesis", "materials", "procedure", "safetyPrecautions"])

LITERARY_ANALYSIS = obj({
    "title": STRING,
    "author": STRING,
    "themes": STRING_LIST,
    "literaryDevices": array_of(obj({"device": STRING, "example": STRING}, ["device", "example"])),
    "characterAnalysis": array_of(obj({"character": STRING, "analysis": STRING}, ["character", "analysis"])),
    "overallSummary": STRING,
}, ["title", "themes", "literaryDevices", "characterAnalysis", "overallSummary"])

REAL_WORLD_APPLICATIONS = array_of(obj({"industry": STRING, "description": STRING}, ["industry", "description"]))

ANALOGIES = array_of(obj({"analogy": STRING, "explanation": STRING}, ["analogy", "explanation"]))

TOPIC_BREAKDOWN = array_of(obj({"title": STRING, "content": STRING}, ["title", "content"]))

SCENE_BLUEPRINTS = array_of(obj({"narration": STRING, "image_prompt": STRING}, ["narration", "image_prompt"]))
